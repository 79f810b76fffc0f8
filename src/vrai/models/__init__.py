"""
vrai.models — Data models of the Vrai domain.

Re-exports the main classes:
    from vrai.models import AuthenticationRequestRead, ProfileRead
"""

from vrai.models.enums import RequestStatus, SubmissionStatus, TicketStatus  # noqa: F401
from vrai.models.request import (  # noqa: F401
    AdminRequestList,
    AuthenticationRequestRead,
    StatusUpdate,
    UserRequestStats,
)
from vrai.models.submission import FinalizeBody, PhotoUploadResult, SubmissionRead  # noqa: F401
from vrai.models.support import (  # noqa: F401
    ProblemReportCreate,
    ProblemReportRead,
    ReplyBody,
    SupportMessageCreate,
    SupportMessageRead,
)
from vrai.models.profile import CurrentUser, ProfileCreate, ProfileRead, PushSettings  # noqa: F401
from vrai.models.dashboard import (  # noqa: F401
    ActivityItem,
    DashboardStatistics,
    DashboardView,
    PercentageChange,
    StatusView,
)
