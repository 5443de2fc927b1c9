"""Core domain package for termhistory.

Core holds command uses, the history that owns them and the mark resolution
step, without any terminal buffer or storage-specific code.
"""
