"""
Shared Kernel

Base domain classes, value objects, errors and the unit of work / message
bus plumbing used by every bounded context.
"""
