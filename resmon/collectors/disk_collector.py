"""Disk metrics collector"""

import psutil
from resmon.collectors.base import BaseCollector
from resmon.collectors.snapshot import DiskUsage


class DiskCollector(BaseCollector):
    """Collector for filesystem usage"""

    field_name = 'disks'

    def collect(self):
        """Collect usage of every mounted filesystem that is not excluded"""
        exclude_fs = self.config.get('exclude_filesystems', [])
        exclude_mounts = self.config.get('exclude_mount_points', [])

        disks = []
        seen = set()
        for partition in psutil.disk_partitions(all=False):
            # Filter out excluded filesystems
            if partition.fstype in exclude_fs:
                continue

            # Filter out excluded mount points
            if any(partition.mountpoint.startswith(mp) for mp in exclude_mounts):
                continue

            # A device mounted twice is reported once
            if partition.device in seen:
                continue

            try:
                usage = psutil.disk_usage(partition.mountpoint)
            except (PermissionError, OSError) as e:
                self.logger.debug(f"Cannot access {partition.mountpoint}: {e}")
                continue

            seen.add(partition.device)
            disks.append(DiskUsage(
                fs_id=partition.device,
                used_bytes=usage.used,
                size_bytes=usage.total,
            ))

        self.logger.debug(f"Collected disk metrics for {len(disks)} filesystems")
        return disks
