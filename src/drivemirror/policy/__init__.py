from .ownership import accept_pending_transfers
from .untracked import UntrackedPolicy

__all__ = ["UntrackedPolicy", "accept_pending_transfers"]
