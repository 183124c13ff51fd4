"""
Backend emitters, one package per target library.
"""
