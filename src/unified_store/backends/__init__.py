"""Backend implementations.

The s3 and sftp operators import their client libraries on open, so every
operator class is importable without the optional extras installed.
"""

from unified_store.backends._fs import FsOperator
from unified_store.backends._memory import MemoryOperator
from unified_store.backends._s3 import S3Operator
from unified_store.backends._sftp import SftpOperator

__all__ = ["FsOperator", "MemoryOperator", "S3Operator", "SftpOperator"]
