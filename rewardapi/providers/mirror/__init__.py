from .local_mirror import LocalMirror
