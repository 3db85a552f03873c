"""Xtraprep - prepares XtraBackup full and incremental backups for restore"""

__version__ = "0.1.0"
