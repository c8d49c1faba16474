"""Engine exceptions.

Empty event pools and "nothing eligible to show" are normal outcomes and
never raise; only caller-supplied structures the engine cannot interpret do.
"""


class NotiProofError(Exception):
    """Base class for engine errors."""
    pass


class InvalidConfig(NotiProofError):
    """Raised when a blending policy lookup receives a non-string category."""
    pass


class MalformedPlaylist(NotiProofError):
    """Raised when a playlist cannot drive sequential or round-robin selection."""

    def __init__(self, playlist_id: str, detail: str):
        self.playlist_id = playlist_id
        self.detail = detail
        super().__init__(f"Playlist {playlist_id} is malformed: {detail}")


class PlaylistNotFound(NotiProofError):
    """Raised when a display request names a playlist the store does not know."""

    def __init__(self, playlist_id: str):
        self.playlist_id = playlist_id
        super().__init__(f"Playlist {playlist_id} not found")
