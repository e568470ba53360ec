from backend.app.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from backend.app.models.organization import Organization  # noqa: F401
from backend.app.models.client import Client  # noqa: F401
from backend.app.models.user import User  # noqa: F401
from backend.app.models.timesheet import Timesheet  # noqa: F401
from backend.app.models.timesheet_event import TimesheetEvent  # noqa: F401
from backend.app.models.invoice import Invoice  # noqa: F401
from backend.app.models.invoice_item import InvoiceItem  # noqa: F401
from backend.app.models.employee_document import EmployeeDocument  # noqa: F401
