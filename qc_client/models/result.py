# qc_client/models/result.py
import enum

class CheckType(str, enum.Enum):
    """Cross-check performed by the validation engine"""
    JOB_NUMBER = "JOB_NUMBER"
    PART_NUMBER = "PART_NUMBER"
    REVISION = "REVISION"
    BOARD_SERIAL = "BOARD_SERIAL"
    UNIT_SERIAL = "UNIT_SERIAL"
    FLIGHT_STATUS = "FLIGHT_STATUS"
    FILE_COMPLETENESS = "FILE_COMPLETENESS"

class CheckStatus(str, enum.Enum):
    """Validation check status"""
    PASS = "PASS"
    WARNING = "WARNING"
    FAIL = "FAIL"
