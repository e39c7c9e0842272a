"""Release orchestration for npm packages."""

from .errors import ReleaseError
from .flow import ReleaseOptions, ReleaseResult, check_prerequisites, plan_steps, release
from .poll import poll
from .repository import PackageInfo, PackageRepo, ReleaseState, Stage, bump_command

__all__ = [
    "PackageInfo",
    "PackageRepo",
    "ReleaseError",
    "ReleaseOptions",
    "ReleaseResult",
    "ReleaseState",
    "Stage",
    "bump_command",
    "check_prerequisites",
    "plan_steps",
    "poll",
    "release",
]
