"""Develop on a remote machine that mirrors the local file system."""
