#!/usr/bin/env python

from sccall.core.exceptions import SCCallError, InvariantError
from sccall.core.logger_setup import set_log_level, subcluster_logger
