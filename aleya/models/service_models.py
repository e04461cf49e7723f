"""
Service Layer Data Transfer Objects.

The result envelope returned by every service method.
"""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

__all__ = ["ServiceResult"]


class ServiceResult(BaseModel, Generic[T]):
    """
    Standard service return envelope.

    All service methods return this, providing a consistent contract
    for the presentation layer.  Status codes used by the services:

    - ``200`` success
    - ``400`` validation failure, nothing was written
    - ``403`` the actor lacks the required role
    - ``409`` the conditional write matched no row (expense missing,
      no longer active, or already resolved by someone else)
    - ``500`` store unreachable or unexpected fault
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    status_code: int = 200
