"""Set reconciliation between local message state and remote id listings.

Everything here is pure: inputs are sets of long-form item ids, outputs are
the ids whose contents must be downloaded.
"""


def reconcile(
    remote_all: set[str] | None,
    remote_unread: set[str],
    local_read: set[str],
    local_unread: set[str],
    unread_only: bool,
) -> set[str]:
    """Return ids that are new remotely or whose read state moved.

    ``remote_all`` may be None in unread-only mode, where the all-items
    listing is never requested.
    """
    remote_all = remote_all or set()
    remote_read = remote_all - remote_unread

    if unread_only:
        to_download = remote_unread - local_read - local_unread
    else:
        to_download = remote_all - local_read - local_unread

    # Read locally, unread remotely.
    to_download |= local_read & remote_unread

    if not unread_only:
        # Unread locally, read remotely.
        to_download |= local_unread & remote_read

    return to_download


def starred_delta(remote_starred: set[str], local_starred: set[str]) -> set[str]:
    """Ids whose starred flag differs between the server and the local copy."""
    return remote_starred ^ local_starred


def fetch_ratio(feeds_to_update: int, total_feeds: int) -> float:
    if total_feeds <= 0:
        return 0.0
    return feeds_to_update / total_feeds


def should_fetch_globally(feeds_to_update: int, total_feeds: int, threshold: float) -> bool:
    """Whether one account-wide pass beats per-feed queries.

    The ratio has to be strictly greater than ``threshold``.
    """
    return fetch_ratio(feeds_to_update, total_feeds) > threshold
