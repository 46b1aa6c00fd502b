"""Transport-level HTTP types.

``Request`` and ``Response`` are the objects every chain entry receives.
``HttpResponse`` is what capability-typed controllers return.
"""
