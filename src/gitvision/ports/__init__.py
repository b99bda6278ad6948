from .host import HostPort, NullHost, ProgressSink
from .vcs import VcsPort

__all__ = ["HostPort", "NullHost", "ProgressSink", "VcsPort"]
