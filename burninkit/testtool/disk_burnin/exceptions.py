"""
Disk Burn-In Custom Exceptions

This module defines custom exception classes for disk burn-in operations.
All exceptions inherit from BurnInError base class.

Pre-run errors (DeviceNotFoundError, ProbeFailedError, BurnInConfigError)
abort the whole invocation. Phase-level errors (StartFailedError,
DeviceError, BurnInTimeoutError) are captured into the phase outcome and
never escape a phase executor.
"""


class BurnInError(Exception):
    """
    Base exception class for all burn-in related errors.

    Catch this to handle any burn-in related error.

    Example:
        >>> try:
        ...     controller.execute()
        ... except BurnInError as e:
        ...     print(f"Burn-in error occurred: {e}")
    """
    pass


class BurnInConfigError(BurnInError):
    """
    Configuration error exception.

    Raised when:
    - Invalid configuration parameters are provided
    - Configuration file is missing or malformed
    - Parameter values are out of acceptable ranges

    Example:
        >>> raise BurnInConfigError("block_size must be >= 512")
    """
    pass


class DeviceNotFoundError(BurnInError):
    """
    Raised when the device identifier does not resolve to a block device.

    Example:
        >>> raise DeviceNotFoundError("/dev/sdz is not a block device")
    """
    pass


class ProbeFailedError(BurnInError):
    """
    Raised when querying drive attributes fails.

    Raised when:
    - smartctl cannot be executed
    - smartctl cannot open the device
    - The identify output cannot be parsed (no model or serial)

    Example:
        >>> raise ProbeFailedError("smartctl returned no serial number")
    """
    pass


class BurnInProcessError(BurnInError):
    """
    Process control error exception.

    Raised when:
    - An external tool (smartctl, badblocks) fails to start
    - Process termination fails
    - A command times out before returning

    Example:
        >>> raise BurnInProcessError("Failed to start badblocks")
    """
    pass


class StartFailedError(BurnInProcessError):
    """
    Raised when the drive rejects a request to start a test.

    Raised when:
    - A self-test is already running on the drive
    - The drive does not support the requested test
    - Another badblocks process already addresses the device

    Example:
        >>> raise StartFailedError("Can't start self-test without aborting current test")
    """
    pass


class DeviceError(BurnInProcessError):
    """
    Raised when the drive stops responding or reports an I/O failure
    while a test is running.

    Example:
        >>> raise DeviceError("smartctl could not open /dev/sdb")
    """
    pass


class BurnInTimeoutError(BurnInError):
    """
    Timeout error exception.

    Raised when:
    - A test does not complete within its maximum wait
    - A smartctl invocation hangs

    Example:
        >>> raise BurnInTimeoutError("SMART extended test exceeded 600 minutes")
    """
    pass
