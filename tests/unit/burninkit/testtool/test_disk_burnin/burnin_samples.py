"""
Canned smartctl / badblocks output and test doubles shared by the
disk burn-in unit tests.
"""

from unittest.mock import Mock


ATA_IDENTITY = """\
smartctl 7.3 2022-02-28 r5338 [x86_64-linux-6.1.0-13-amd64] (local build)
Copyright (C) 2002-22, Bruce Allen, Christian Franke, www.smartmontools.org

=== START OF INFORMATION SECTION ===
Model Family:     Western Digital Red
Device Model:     WDC WD40EFRX-68N32N0
Serial Number:    WD-WCC7K1234567
LU WWN Device Id: 5 0014ee 2b9c0a1b2
Firmware Version: 82.00A82
User Capacity:    4,000,787,030,016 bytes [4.00 TB]
Sector Sizes:     512 bytes logical, 4096 bytes physical
Rotation Rate:    5400 rpm
Form Factor:      3.5 inches
SMART support is: Available - device has SMART capability.
SMART support is: Enabled

=== START OF READ SMART DATA SECTION ===
General SMART Values:
Offline data collection status:  (0x00)	Offline data collection activity
					was never started.
Self-test execution status:      (   0)	The previous self-test routine completed
					without error or no self-test has ever
					been run.
Short self-test routine
recommended polling time: 	 (   2) minutes.
Extended self-test routine
recommended polling time: 	 ( 497) minutes.
"""

NVME_IDENTITY = """\
smartctl 7.3 2022-02-28 r5338 [x86_64-linux-6.1.0-13-amd64] (local build)

=== START OF INFORMATION SECTION ===
Model Number:                       Samsung SSD 970 EVO Plus 1TB
Serial Number:                      S4EWNX0R123456A
Firmware Version:                   2B2QEXM7
Total NVM Capacity:                 1,000,204,886,016 [1.00 TB]
Namespace 1 Size/Capacity:          1,000,204,886,016 [1.00 TB]
"""

SCSI_SSD_IDENTITY = """\
=== START OF INFORMATION SECTION ===
Vendor:               SEAGATE
Product:              XS800LE70004
Serial number:        HLJ0A1B2
User Capacity:        800,166,076,416 bytes [800 GB]
Rotation Rate:        Solid State Device
"""

ATA_IN_PROGRESS = """\
Self-test execution status:      ( 249)	Self-test routine in progress...
					90% of test remaining.
"""

ATA_PASSED = """\
Self-test execution status:      (   0)	The previous self-test routine completed
					without error or no self-test has ever
					been run.
"""

ATA_FAILED = """\
Self-test execution status:      ( 121)	The previous self-test completed having
					the read element of the test failed.
"""

NVME_IN_PROGRESS = """\
Self-test Log (NVMe Log 0x06)
Self-test status: Short self-test in progress (27% completed)
No Self-tests Logged
"""

NVME_PASSED = """\
Self-test Log (NVMe Log 0x06)
Self-test status: No self-test in progress
Num  Test_Description  Status                       Power_on_Hours  Failing_LBA  NSID Seg SCT Code
 0   Short             Completed without error                3264             -     -   -   -    -
"""

SELFTEST_LOG_INTERRUPTED = """\
SMART Self-test log structure revision number 1
Num  Test_Description    Status                  Remaining  LifeTime(hours)  LBA_of_first_error
# 1  Short offline       Interrupted (host reset)      90%     45123         -
# 2  Extended offline    Completed without error       00%     44000         -
"""

TEST_BEGUN = """\
=== START OF OFFLINE IMMEDIATE AND SELF-TEST SECTION ===
Sending command: "Execute SMART Short self-test routine immediately in off-line mode".
Drive command "Execute SMART Short self-test routine immediately in off-line mode" successful.
Testing has begun.
Please wait 2 minutes for test to complete.
"""

TEST_REJECTED = """\
Can't start self-test without aborting current test (10% remaining),
add '-t force' option to override, or run 'smartctl -X' to abort test.
"""

ERROR_LOG = """\
SMART Error Log Version: 1
ATA Error Count: 3
Error 3 occurred at disk power-on lifetime: 45120 hours
"""


class FakeClock:
    """Monotonic clock advanced only by its own sleep()."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds

    def __call__(self):
        return self.now


def completed(stdout='', returncode=0, stderr=''):
    """Stand-in for subprocess.CompletedProcess."""
    return Mock(returncode=returncode, stdout=stdout, stderr=stderr)
