# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Utility functions for the blobvfs filesystem layer.

This module provides logging configuration and utility functions
shared by the virtual filesystem implementation.
"""

import logging
import time
import os

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s] - %(message)s'

logger = logging.getLogger('BlobVFS')

def configure_logging(level=None):
    """
    Configure the root handler and the BlobVFS logger level.

    The level defaults to the BLOBVFS_LOG_LEVEL environment variable,
    then DEBUG.

    Args:
        level (str or int, optional): Logging level to apply
    """
    if level is None:
        level = os.environ.get('BLOBVFS_LOG_LEVEL', 'DEBUG').upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logger.setLevel(level)

def tracing_enabled():
    """Whether BLOBVFS_TRACE_OPS asks for a debug trace of all file operations."""
    return os.environ.get('BLOBVFS_TRACE_OPS', '').lower() in ('true', '1', 'yes')

def time_function(func_name, start_time):
    """
    Helper function for timing operations.

    Calculates and logs the elapsed time for a function call.

    Args:
        func_name (str): Name of the function being timed
        start_time (float): Start time from time.time()

    Returns:
        float: Elapsed time in seconds
    """
    elapsed = time.time() - start_time
    logger.debug(f"{func_name} completed in {elapsed:.4f} seconds")
    return elapsed

def trace_op(operation, path, **details):
    """
    Trace a file operation for debugging purposes.

    This function logs detailed information about file operations
    when the BLOBVFS_TRACE_OPS environment variable is set.

    Args:
        operation (str): The file operation being performed
        path (str): The path of the file being operated on
        **details: Additional details to log
    """
    if tracing_enabled():
        detail_str = ', '.join(f"{k}={v}" for k, v in details.items())
        logger.debug(f"TRACE: {operation} on {path} {detail_str}")
