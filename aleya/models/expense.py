"""
Expense Model.

Pydantic models for expense records (egresos) and the request payloads
used to create or edit them.  Column names match the Supabase
``expenses`` table so rows validate without renaming.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from aleya.models.enums import ExpenseStatus, PaymentMethod

OTHER_CATEGORY: str = "Otros"

DEFAULT_EXPENSE_CATEGORIES: tuple[str, ...] = (
    "Administración",
    "Arreglos Locativos",
    "Arriendo",
    "Bolsas Milagros",
    "Camara de Comercio",
    "Datafono y 4xmil",
    "Domicilios Propios",
    "Flete",
    "Honorarios Contabilidad",
    "Intereses y Préstamos",
    "Línea Corporativa",
    "Material/Insumos y Papelería",
    "Pago por Transacción Milagros",
    "Personal Turnos",
    "Prestaciones Sociales",
    "Publicidad",
    "Renovación Sigo Nomina",
    "Seguridad Social",
    "Seguro Local y Mercancia Protegida",
    "Servicio Público",
    "Soporte Web Contapyme",
    "Sueldos/Nómina",
    "Viáticos/Gastos Representación",
    OTHER_CATEGORY,
)


class Expense(BaseModel):
    """A recorded outflow of money.

    ``status`` only ever moves ``active -> cancelled``.  The
    ``cancellation_requested_*`` fields describe a request made by a
    non-privileged user; the ``cancelled_*`` fields describe the
    cancellation that was actually applied.  Both sets survive an
    approval so the requester's and the approver's reasons can be shown
    side by side.
    """

    id: str
    store_id: Optional[str] = None
    category: str
    amount: int = Field(gt=0)
    date: dt.date
    payment_method: PaymentMethod
    notes: str = ""
    status: ExpenseStatus = ExpenseStatus.ACTIVE
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    # Request side (non-privileged user asks for a cancellation)
    cancellation_requested_at: Optional[dt.datetime] = None
    cancellation_requested_by: Optional[str] = None
    cancellation_requested_by_name: Optional[str] = None
    cancellation_request_reason: Optional[str] = None

    # Resolution side (privileged user cancels)
    cancelled_at: Optional[dt.datetime] = None
    cancelled_by: Optional[str] = None
    cancelled_by_name: Optional[str] = None
    cancellation_reason: Optional[str] = None

    model_config = {"from_attributes": True}

    @field_validator("notes", mode="before")
    @classmethod
    def _none_notes_to_empty(cls: type[Expense], v: object) -> object:
        return "" if v is None else v

    @property
    def has_pending_request(self) -> bool:
        return has_pending_request(self)


def has_pending_request(expense: Expense) -> bool:
    """Return ``True`` while a cancellation request awaits review.

    An expense is pending when it is still active and carries a request
    timestamp.  Every "pending" check in the code base goes through here.
    """
    return (
        expense.status == ExpenseStatus.ACTIVE
        and expense.cancellation_requested_at is not None
    )


class ExpenseInput(BaseModel):
    """Validated input for a new expense."""

    store_id: Optional[str] = None
    category: str = Field(min_length=1)
    amount: int = Field(gt=0)
    date: dt.date
    payment_method: PaymentMethod
    notes: str = ""

    @field_validator("category", "notes", mode="before")
    @classmethod
    def _strip(cls: type[ExpenseInput], v: object) -> object:
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v


class ExpenseUpdate(BaseModel):
    """Partial update of an expense's editable fields.

    Only fields explicitly set by the caller are written; use
    ``model_dump(exclude_unset=True)``.
    """

    store_id: Optional[str] = None
    category: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[int] = Field(default=None, gt=0)
    date: Optional[dt.date] = None
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = None

    @field_validator("category", "notes", mode="before")
    @classmethod
    def _strip(cls: type[ExpenseUpdate], v: object) -> object:
        return v.strip() if isinstance(v, str) else v
