#!/usr/bin/env python

"""Exceptions raised by sccall."""


class SCCallError(Exception):
    """Raise a custom exception that will report with traceback.

    This is used to catch and report internal errors in the code,
    and the traceback will include the source error and error type
    for debugging.
    """
    def __init__(self, *args, **kwargs):
        Exception.__init__(self, *args, **kwargs)


class InvariantError(SCCallError):
    """Input bookkeeping is inconsistent (e.g., a cell group that has
    no entry in id_to_pos, or a base count without exactly 4 slots).

    This indicates a bug in the caller, not a data condition, so it is
    never caught inside sccall.
    """
