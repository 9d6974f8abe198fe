from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field, model_validator

from configs import settings
from utils.money import ZERO, round_currency, subtract


class LineItemKind(str, Enum):
    """
    Kind of row on a quote/invoice:
    - ITEM: an ordinary billable row
    - HEADER: a visual separator, never billed
    - TIMESHEET: a row generated from billable hours
    """
    ITEM = "ITEM"
    HEADER = "HEADER"
    TIMESHEET = "TIMESHEET"


class QuoteStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    INVOICED = "INVOICED"


class InvoiceStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class PaymentStatus(str, Enum):
    """Only PAID payments count toward an invoice's paidAmount."""
    DRAFT = "DRAFT"
    PAID = "PAID"


class PaymentMode(str, Enum):
    CASH = "Cash"
    BANK_TRANSFER = "Bank Transfer"
    CHEQUE = "Cheque"
    CREDIT_CARD = "Credit Card"
    DEBIT_CARD = "Debit Card"


class LineItem(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: LineItemKind = Field(LineItemKind.ITEM, validation_alias=AliasChoices("kind", "type"))
    itemId: Optional[str] = None
    name: str = ""
    description: Optional[str] = None
    quantity: Decimal = Field(ZERO, ge=0)
    unitRate: Decimal = Field(ZERO, ge=0, validation_alias=AliasChoices("unitRate", "rate"))
    taxRatePercent: Decimal = Field(ZERO, ge=0, le=100, validation_alias=AliasChoices("taxRatePercent", "taxRate"))

    @model_validator(mode="before")
    @classmethod
    def _zero_header_figures(cls, data):
        if isinstance(data, dict) and data.get("kind", data.get("type")) == LineItemKind.HEADER:
            data = {k: v for k, v in data.items() if k not in ("rate", "taxRate")}
            data.update(quantity=ZERO, unitRate=ZERO, taxRatePercent=ZERO)
        return data

    @computed_field
    @property
    def amount(self) -> Decimal:
        if self.kind == LineItemKind.HEADER:
            return round_currency(ZERO)
        return round_currency(self.quantity * self.unitRate)

    @property
    def is_header(self) -> bool:
        return self.kind == LineItemKind.HEADER


class DocumentTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: Decimal = ZERO
    taxAmount: Decimal = ZERO
    total: Decimal = ZERO


class TimesheetEntry(BaseModel):
    """One time-tracking record as supplied by the time-entry source."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    workDate: date = Field(validation_alias=AliasChoices("workDate", "date"))
    hours: Decimal = Field(ge=0)
    description: Optional[str] = None
    billable: bool = True


class Quote(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    quoteNumber: str = ""
    contactId: Optional[str] = None
    projectId: Optional[str] = None
    templateId: Optional[str] = None
    paymentTerms: Optional[str] = None
    issueDate: date
    expiryDate: Optional[date] = None
    status: QuoteStatus = QuoteStatus.DRAFT
    items: List[LineItem] = Field(default_factory=list)
    subtotal: Decimal = ZERO
    taxAmount: Decimal = ZERO
    total: Decimal = ZERO
    notes: Optional[str] = None
    invoiceId: Optional[str] = None   # set once, when converted

    @property
    def totals(self) -> DocumentTotals:
        return DocumentTotals(subtotal=self.subtotal, taxAmount=self.taxAmount, total=self.total)

    @property
    def convertedToInvoice(self) -> bool:
        return self.invoiceId is not None


class Invoice(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    invoiceNumber: str = ""
    contactId: Optional[str] = None
    projectId: Optional[str] = None
    templateId: Optional[str] = None
    quoteId: Optional[str] = None   # originating quote, if any
    paymentTerms: Optional[str] = None
    issueDate: date
    dueDate: Optional[date] = None
    status: InvoiceStatus = InvoiceStatus.DRAFT
    items: List[LineItem] = Field(default_factory=list)
    subtotal: Decimal = ZERO
    taxAmount: Decimal = ZERO
    total: Decimal = ZERO
    paidAmount: Decimal = Field(ZERO, ge=0)   # derived from the payment ledger only
    notes: Optional[str] = None

    @property
    def totals(self) -> DocumentTotals:
        return DocumentTotals(subtotal=self.subtotal, taxAmount=self.taxAmount, total=self.total)

    @property
    def balance_due(self) -> Decimal:
        return round_currency(subtract(self.total, self.paidAmount))


class Payment(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    paymentNumber: str = ""
    invoiceId: str
    amountReceived: Decimal = Field(gt=0)
    bankCharges: Optional[Decimal] = Field(None, ge=0)
    pan: Optional[str] = None
    taxDeducted: bool = False
    tdsAmount: Optional[Decimal] = Field(None, ge=0)
    paymentDate: Optional[date] = None
    paymentMode: PaymentMode = PaymentMode.BANK_TRANSFER
    paymentReceivedOn: Optional[date] = None
    referenceNumber: Optional[str] = None
    notes: Optional[str] = None
    status: PaymentStatus = PaymentStatus.DRAFT


class PaymentEdits(BaseModel):
    """Fields a caller may supply when recording or editing a payment."""

    paymentNumber: Optional[str] = None
    amountReceived: Optional[Decimal] = Field(None, gt=0)
    bankCharges: Optional[Decimal] = Field(None, ge=0)
    pan: Optional[str] = None
    taxDeducted: Optional[bool] = None
    tdsAmount: Optional[Decimal] = Field(None, ge=0)
    paymentDate: Optional[date] = None
    paymentMode: Optional[PaymentMode] = None
    paymentReceivedOn: Optional[date] = None
    referenceNumber: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[PaymentStatus] = None


class CompanyInfo(BaseModel):
    name: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zipCode: str = ""
    country: str = ""
    email: str = ""

    @classmethod
    def from_settings(cls) -> "CompanyInfo":
        return cls(
            name=settings.COMPANY_NAME,
            address=settings.COMPANY_ADDRESS,
            city=settings.COMPANY_CITY,
            state=settings.COMPANY_STATE,
            zipCode=settings.COMPANY_ZIP_CODE,
            country=settings.COMPANY_COUNTRY,
            email=settings.COMPANY_EMAIL,
        )


class ContactInfo(BaseModel):
    name: str
    email: Optional[str] = None
    address: Optional[str] = None
    billingAddress: Optional[str] = None
    city: Optional[str] = None
    billingCity: Optional[str] = None
    state: Optional[str] = None
    billingState: Optional[str] = None
    zipCode: Optional[str] = None
    billingZipCode: Optional[str] = None
    country: Optional[str] = None
    billingCountry: Optional[str] = None
