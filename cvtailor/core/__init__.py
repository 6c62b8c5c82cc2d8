"""
Core domain logic.

Fingerprinting, section extraction, prompt construction and the exception
hierarchy. No I/O.
"""
