"""
Reading Fluency Assessor.

Real-time pronunciation and fluency assessment for remedial reading
flashcards.
"""

__version__ = "0.1.0"
