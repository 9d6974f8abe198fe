"""
Error taxonomy for the billing core.

Validation failures subclass ValueError so callers that already map
ValueError to a "400 Bad Request" keep working. Lookup failures subclass
LookupError. Rendering never raises.
"""


class BillingError(Exception):
    """Base class for every error raised by the billing core."""


class BillingValidationError(BillingError, ValueError):
    """A rejected operation. Nothing was changed."""


class InvalidStatusTransitionError(BillingValidationError):
    def __init__(self, document: str, current: str, target: str, reason: str | None = None):
        self.document = document
        self.current = current
        self.target = target
        message = f"Cannot move {document} from {current} to {target}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DocumentNotEditableError(BillingValidationError):
    """Raised when editing or deleting a quote/invoice outside DRAFT."""


class EmptyDocumentError(BillingValidationError):
    """Raised when a quote/invoice is created or edited with no line items."""


class PaymentRejectedError(BillingValidationError):
    """A payment could not be recorded against the invoice."""


class OverpaymentError(PaymentRejectedError):
    pass


class MissingTdsAmountError(PaymentRejectedError):
    pass


class PaymentNotFoundError(BillingError, LookupError):
    def __init__(self, payment_id: str, invoice_id: str | None = None):
        self.payment_id = payment_id
        self.invoice_id = invoice_id
        where = f" on invoice {invoice_id}" if invoice_id else ""
        super().__init__(f"Payment {payment_id} not found{where}")
