"""
Lifebook people resolution: duplicate detection, merge and undo.
"""
