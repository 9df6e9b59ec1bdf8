"""clone-intake: paid video submissions with chunked, resumable uploads"""
__version__ = "1.0.0"
