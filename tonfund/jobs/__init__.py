"""Background job modules for periodic tonfund tasks."""

from tonfund.jobs.reconcile_burns import reconcile_unverified_burns
from tonfund.jobs.refund_rejections import refund_eligible_rejections

__all__ = [
    "reconcile_unverified_burns",
    "refund_eligible_rejections",
]
