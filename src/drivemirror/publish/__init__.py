from .body import (
    HEAD_BRANCH_PREFIX,
    commit_message,
    folder_url,
    format_pr_body,
    head_branch_name,
    pr_title,
)
from .branch import GitWorkspace
from .protocol import PublishProtocol, PublishState, is_no_commits_error

__all__ = [
    "HEAD_BRANCH_PREFIX",
    "head_branch_name",
    "pr_title",
    "commit_message",
    "folder_url",
    "format_pr_body",
    "GitWorkspace",
    "PublishProtocol",
    "PublishState",
    "is_no_commits_error",
]
