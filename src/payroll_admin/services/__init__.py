"""Resource services and their collaborators."""

from payroll_admin.services.audit import AuditEvent, AuditTrail, DatabaseAuditSink, log_audit_event
from payroll_admin.services.auth_service import AuthService
from payroll_admin.services.company_service import CompanyService
from payroll_admin.services.email import EmailSender, SmtpEmailSender
from payroll_admin.services.employee_service import EmployeeService
from payroll_admin.services.pagination import Page, PageRequest
from payroll_admin.services.payroll_service import PayrollService, PayrollTotals
from payroll_admin.services.storage import LocalDocumentStorage, UploadedDocument

__all__ = [
    "AuditEvent",
    "AuditTrail",
    "AuthService",
    "CompanyService",
    "DatabaseAuditSink",
    "EmailSender",
    "EmployeeService",
    "LocalDocumentStorage",
    "Page",
    "PageRequest",
    "PayrollService",
    "PayrollTotals",
    "SmtpEmailSender",
    "UploadedDocument",
    "log_audit_event",
]
