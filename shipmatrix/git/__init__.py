"""The git calls shipmatrix makes.

Queries read the latest reachable tag, the remote URL and whether the
remote already has a tag. Operations create, push and delete the one
annotated release tag of a manual run. Failures raise GitError, and a
refused push raises TagPushConflict.
"""

from shipmatrix.git.operations import delete_tag, push_tag, tag
from shipmatrix.git.queries import get_latest_tag, get_remote_url, remote_tag_exists

__all__ = [
    "get_latest_tag",
    "get_remote_url",
    "remote_tag_exists",
    "tag",
    "push_tag",
    "delete_tag",
]
