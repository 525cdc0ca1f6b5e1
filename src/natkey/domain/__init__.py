"""Domain Finders built on :mod:`natkey.finder`."""
