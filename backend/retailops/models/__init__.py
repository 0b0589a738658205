from .tenancy import Store
from .auth import User, UserStoreAccess, SessionToken
from .security import SecurityEvent
from .rokar import RokarEntry, ledger_key
from .imports import RokarImportBatch, RokarImportRow
from .attendance import AttendanceRecord, attendance_key

__all__ = [
    'Store',
    'User', 'UserStoreAccess', 'SessionToken',
    'SecurityEvent',
    'RokarEntry', 'ledger_key',
    'RokarImportBatch', 'RokarImportRow',
    'AttendanceRecord', 'attendance_key',
]
