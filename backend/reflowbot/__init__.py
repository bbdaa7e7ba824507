"""
ReflowBot
Work order reflow scheduler for manufacturing work centers.
"""
