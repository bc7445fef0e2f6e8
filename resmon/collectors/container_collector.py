"""Container metrics collector"""

import json
import re
import shutil
import subprocess
from typing import List, Optional

from resmon.collectors.base import BaseCollector
from resmon.collectors.snapshot import ContainerUsage

SIZE_UNITS = {
    'b': 1,
    'kb': 1000,
    'mb': 1000 ** 2,
    'gb': 1000 ** 3,
    'tb': 1000 ** 4,
    'kib': 1024,
    'mib': 1024 ** 2,
    'gib': 1024 ** 3,
    'tib': 1024 ** 4,
}

SIZE_PATTERN = re.compile(r'^\s*([0-9.]+)\s*([a-zA-Z]*)\s*$')


def parse_size(text: str) -> int:
    """
    Parse a human-readable size as printed by ``docker stats``.

    Example:
        >>> parse_size('12.5MiB')
        13107200
    """
    match = SIZE_PATTERN.match(text)
    if not match:
        raise ValueError(f"Unrecognized size: {text!r}")
    number, unit = match.groups()
    multiplier = SIZE_UNITS.get((unit or 'b').lower())
    if multiplier is None:
        raise ValueError(f"Unrecognized size unit: {unit!r}")
    return int(float(number) * multiplier)


def parse_percent(text: str) -> float:
    """Parse a percentage such as ``'3.25%'``"""
    return float(text.strip().rstrip('%') or 0)


def parse_stats_line(line: str) -> Optional[ContainerUsage]:
    """Parse one ``docker stats --format '{{json .}}'`` line"""
    data = json.loads(line)

    name = data.get('Name') or data.get('Container') or data.get('ID') or 'unknown'
    mem_usage = data.get('MemUsage', '')
    if '/' not in mem_usage:
        return None
    used_text, limit_text = mem_usage.split('/', 1)

    return ContainerUsage(
        name=name,
        cpu_percent=parse_percent(data.get('CPUPerc', '0%')),
        mem_used_bytes=parse_size(used_text),
        mem_limit_bytes=parse_size(limit_text),
    )


class ContainerCollector(BaseCollector):
    """Collector for running container CPU and memory usage"""

    field_name = 'containers'

    def __init__(self, config):
        super().__init__(config)
        self.runtime = config.get('runtime', 'docker')
        self.timeout = config.get('timeout', 10)
        self.available = True

    def initialize(self):
        """Detect whether the container runtime CLI is installed"""
        if shutil.which(self.runtime) is None:
            self.available = False
            self.logger.info(f"Container runtime '{self.runtime}' not found, container metrics disabled")

    def collect(self):
        """Collect stats for every running container"""
        if not self.available:
            return []

        cmd = [self.runtime, 'stats', '--no-stream', '--format', '{{json .}}']
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        if result.returncode != 0:
            raise RuntimeError(
                f"'{' '.join(cmd)}' exited with {result.returncode}: {result.stderr.strip()}"
            )

        containers: List[ContainerUsage] = []
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            try:
                usage = parse_stats_line(line)
            except (ValueError, json.JSONDecodeError) as e:
                self.logger.warning(f"Failed to parse container stats line {line!r}: {e}")
                continue
            if usage is not None:
                containers.append(usage)

        self.logger.debug(f"Collected stats for {len(containers)} containers")
        return containers
