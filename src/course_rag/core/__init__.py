"""Core services: the upload-and-forward pipeline and the ask flow."""
