import enum
import logging
import requests
from .api_client import ApiError

logger = logging.getLogger(__name__)


class FeedState(enum.Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class Player:
    """A mounted video player. Only the feed's active player autoplays and loops."""

    def __init__(self, video, autoplay=False, loop=False):
        self.video = video
        self.autoplay = autoplay
        self.loop = loop
        self.controls = video.get('controls', True)
        self.mounted = True

    @classmethod
    def active(cls, video):
        return cls(video, autoplay=True, loop=True)

    @classmethod
    def card(cls, video):
        return cls(video)

    @property
    def key(self):
        return self.video.get('id')

    def unmount(self):
        self.mounted = False

    def __repr__(self):
        return f'<Player {self.key} autoplay={self.autoplay} mounted={self.mounted}>'


class FeedViewer:
    """Vertical feed positioned on one video, stepping with prev/next.

    The list is fetched once by ``load()``. An id that is not in the list
    falls back to the first video.
    """

    def __init__(self, api_client, video_id):
        self.api_client = api_client
        self.video_id = video_id
        self.videos = []
        self.index = 0
        self.state = FeedState.LOADING
        self.error = None
        self.player = None

    def load(self):
        self.state = FeedState.LOADING
        try:
            videos = self.api_client.get_videos()
        except (ApiError, requests.RequestException) as e:
            logger.error(f"Error fetching videos: {e}")
            self.error = "Failed to load videos"
            self.state = FeedState.ERROR
            return self

        self.videos = videos
        self.error = None
        self._set_index(self._find_index(self.video_id))
        self.state = FeedState.READY
        return self

    def _find_index(self, video_id):
        for i, video in enumerate(self.videos):
            if str(video.get('id')) == str(video_id):
                return i
        return 0

    def _set_index(self, index):
        if self.player is not None:
            self.player.unmount()
            self.player = None
        self.index = index
        if self.videos:
            self.player = Player.active(self.videos[index])

    @property
    def current_video(self):
        if self.state is not FeedState.READY or not self.videos:
            return None
        return self.videos[self.index]

    @property
    def show_prev(self):
        return self.state is FeedState.READY and self.index > 0

    @property
    def show_next(self):
        return self.state is FeedState.READY and self.index < len(self.videos) - 1

    def prev(self):
        if self.show_prev:
            self._set_index(self.index - 1)
        return self.current_video

    def next(self):
        if self.show_next:
            self._set_index(self.index + 1)
        return self.current_video
