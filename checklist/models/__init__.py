from .user import User
from .team import Team, TeamMember, TeamBan
from .invitation import TeamInvitation
from .notification_preference import TeamNotificationPreference
from .task import Task, TaskAssignment
from .completion import TaskCompletion
from .check_in import CheckIn

# додай тут всі свої моделі!
