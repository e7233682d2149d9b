"""Course hierarchy manager with a proxy to a remote question-answering backend."""

__version__ = "0.1.0"
