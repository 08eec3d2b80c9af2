# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Retry Module.

This module provides a retry decorator with exponential backoff for object
store client operations. It handles transient errors and network issues by
automatically retrying failed operations with increasing delays between
attempts, and converts gRPC errors raised by gRPC-backed store clients into
blobvfs exceptions.

Functions:
    retry: Decorator for retrying functions with exponential backoff.
    _convert_grpc_error: Helper function to convert gRPC errors to blobvfs exceptions.

Classes:
    RetryingStoreClient: Wraps every operation of a store client with ``retry``.
"""
import logging
import time
from functools import wraps
from typing import Type, Callable, Any, Tuple
import grpc
from .exceptions import (
    AuthenticationError,
    BlobVFSError,
    ContainerError,
    ContainerExistsError,
    ContainerNotFoundError,
    ObjectError,
    ObjectNotFoundError,
    TransportError,
)

logger = logging.getLogger('BlobVFS')

RETRYABLE_STATUS_CODES = {
    grpc.StatusCode.UNAVAILABLE,
    grpc.StatusCode.RESOURCE_EXHAUSTED,
    grpc.StatusCode.DEADLINE_EXCEEDED,
}

STORE_OPERATIONS = (
    "get_object",
    "put_object",
    "delete_object",
    "list_objects",
    "get_object_properties",
    "copy_object",
    "create_container",
    "get_container_properties",
)

def _convert_grpc_error(e: grpc.RpcError, operation: str = None) -> BlobVFSError:
    """
    Convert gRPC errors to appropriate blobvfs errors.

    Not-found and already-exists statuses become the container or object
    exceptions the filesystem layer branches on; everything else becomes a
    ``TransportError``.

    Args:
        e (grpc.RpcError): The gRPC error to convert.
        operation (str, optional): The operation being performed. Defaults to None.

    Returns:
        BlobVFSError: The converted error.
    """
    error_msg = str(e.details() if hasattr(e, 'details') else str(e))
    error_code = e.code() if hasattr(e, 'code') else None
    lowered = error_msg.lower()
    container_op = operation in ("CREATE_CONTAINER", "GET_CONTAINER_PROPERTIES")

    if error_code == grpc.StatusCode.NOT_FOUND or any(x in lowered for x in ["404", "not found"]):
        if container_op or "container" in lowered:
            return ContainerNotFoundError(error_msg or "Container does not exist")
        return ObjectNotFoundError(error_msg or "Object does not exist")

    if error_code == grpc.StatusCode.ALREADY_EXISTS or "already exists" in lowered:
        if container_op or "container" in lowered:
            return ContainerExistsError(error_msg or "Container already exists")
        return ObjectError(error_msg, operation=operation)

    if error_code in (grpc.StatusCode.UNAUTHENTICATED, grpc.StatusCode.PERMISSION_DENIED):
        return AuthenticationError(error_msg or "Authentication failed")

    if error_code:
        if error_code == grpc.StatusCode.DEADLINE_EXCEEDED:
            return TransportError("Request timed out", code="ERR_TIMEOUT")
        if error_code == grpc.StatusCode.RESOURCE_EXHAUSTED:
            return TransportError("Rate limit exceeded", code="ERR_RATE_LIMIT")
        if error_code == grpc.StatusCode.UNAVAILABLE:
            return TransportError("Service unavailable", code="ERR_UNAVAILABLE")
        if error_code == grpc.StatusCode.INTERNAL:
            return TransportError("Internal server error", code="ERR_INTERNAL")

    if container_op:
        return ContainerError(error_msg, operation=operation)
    return TransportError(error_msg)

def retry(
    max_attempts: int = 5,
    initial_backoff: float = 0.1,
    max_backoff: float = 5.0,
    backoff_multiplier: float = 2.0,
    retryable_exceptions: Tuple[Type[Exception], ...] = (grpc.RpcError, TransportError)
) -> Callable:
    """
    Decorator for retrying a function with exponential backoff.

    This decorator wraps a function to automatically retry it when specified
    exceptions occur, with an exponential backoff delay between attempts.

    Args:
        max_attempts (int): Maximum number of attempts. Defaults to 5.
        initial_backoff (float): Initial backoff time in seconds. Defaults to 0.1.
        max_backoff (float): Maximum backoff time in seconds. Defaults to 5.0.
        backoff_multiplier (float): Multiplier for exponential backoff. Defaults to 2.0.
        retryable_exceptions (Tuple[Type[Exception], ...]): Exceptions that trigger a retry.
            Defaults to (grpc.RpcError, TransportError).

    Returns:
        Callable: A decorator that wraps the function.
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            """
            Executes the function with retry logic and exponential backoff.

            Returns:
                Any: Result of the function call.

            Raises:
                BlobVFSError: If all retry attempts fail, or on a non-retryable error.
            """
            last_exception = None
            backoff = initial_backoff
            re_authenticated_this_cycle = False

            operation = func.__name__.upper() if func.__name__ in STORE_OPERATIONS else None
            client_instance = getattr(func, '__self__', None)
            if client_instance is None and args:
                client_instance = args[0]

            for attempt in range(max_attempts):
                try:
                    return func(*args, **kwargs)
                except retryable_exceptions as e:
                    last_exception = e

                    if isinstance(e, AuthenticationError):
                        raise

                    if isinstance(e, grpc.RpcError):
                        status_code = grpc.StatusCode.UNKNOWN
                        if hasattr(e, 'code') and callable(e.code):
                            status_code = e.code()

                        if status_code == grpc.StatusCode.UNAUTHENTICATED:
                            re_auth = getattr(client_instance, '_re_authenticate', None)
                            if callable(re_auth) and not re_authenticated_this_cycle and attempt < max_attempts - 1:
                                logger.warning(f"Caught UNAUTHENTICATED error during {func.__name__}, attempting re-authentication...")
                                try:
                                    re_auth()
                                except Exception as reauth_err:
                                    logger.error(f"Re-authentication failed during retry for {func.__name__}: {reauth_err}")
                                    raise AuthenticationError(f"Re-authentication failed: {reauth_err}") from reauth_err
                                re_authenticated_this_cycle = True
                                continue
                            raise _convert_grpc_error(e, operation) from e

                        if status_code not in RETRYABLE_STATUS_CODES:
                            logger.debug(f"Non-retryable gRPC error ({status_code}) during {func.__name__}")
                            raise _convert_grpc_error(e, operation) from e

                    if attempt < max_attempts - 1:
                        logger.warning(
                            f"Retryable error during {func.__name__} ({type(e).__name__}: {e}). "
                            f"Attempt {attempt + 1}/{max_attempts}. Retrying after {backoff:.2f}s..."
                        )
                        time.sleep(backoff)
                        backoff = min(backoff * backoff_multiplier, max_backoff)

            if isinstance(last_exception, grpc.RpcError):
                raise _convert_grpc_error(last_exception, operation) from last_exception
            if isinstance(last_exception, BlobVFSError):
                raise last_exception

            raise TransportError(
                f"Operation failed after {max_attempts} attempts: {str(last_exception)}"
            ) from last_exception

        return wrapper
    return decorator

class RetryingStoreClient:
    """
    Store client proxy applying ``retry`` to every protocol operation.

    Every store client used by the filesystem goes through this proxy, so
    gRPC errors are always converted. ``max_attempts=1`` converts without
    retrying. Operations are looked up on the wrapped client at call time.

    Attributes:
        client: The wrapped store client
        policy (callable): The ``retry`` decorator applied to each operation
    """

    def __init__(self, client, max_attempts: int = 5, initial_backoff: float = 0.1,
                 max_backoff: float = 5.0):
        self.client = client
        self.policy = retry(max_attempts=max_attempts, initial_backoff=initial_backoff,
                            max_backoff=max_backoff)

    def __getattr__(self, name):
        attribute = getattr(self.client, name)
        if name in STORE_OPERATIONS:
            return self.policy(attribute)
        return attribute
