"""Organization-scoped tables, in the order rows can be deleted safely"""

from ..models import FamilyGroup, NotificationLog
from ..models_content import (
    ChecklistImage,
    CheckinSession,
    CustomChecklist,
    Document,
    SharedNote,
    SurveyResponse,
)
from ..models_financial import Payment, Receipt, RecurringBill, ReservationSettings
from ..models_reservation import Reservation, TradeRequest
from ..models_rotation import (
    RotationOrder,
    SelectionPeriodExtension,
    SelectionRoundStatus,
    SelectionTurnNotification,
    TimePeriodUsage,
)

# Children first; restores insert in reverse
ORGANIZATION_SCOPED_MODELS = [
    SurveyResponse,
    CheckinSession,
    NotificationLog,
    SelectionTurnNotification,
    SelectionPeriodExtension,
    SelectionRoundStatus,
    TimePeriodUsage,
    TradeRequest,
    Payment,
    Receipt,
    Reservation,
    RecurringBill,
    ReservationSettings,
    ChecklistImage,
    CustomChecklist,
    SharedNote,
    Document,
    RotationOrder,
    FamilyGroup,
]

MODELS_BY_TABLE = {model.__tablename__: model for model in ORGANIZATION_SCOPED_MODELS}
