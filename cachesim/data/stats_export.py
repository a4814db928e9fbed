"""Statistics and exporters.
"""
import csv
import json
import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)

REPORT_FIELDS = (
    ('Total loads', 'total_loads'),
    ('Total stores', 'total_stores'),
    ('Load hits', 'load_hits'),
    ('Load misses', 'load_misses'),
    ('Store hits', 'store_hits'),
    ('Store misses', 'store_misses'),
    ('Total cycles', 'total_cycles'),
)


class Statistics:
    def __init__(self):
        # counters only ever grow
        self.total_loads = 0
        self.total_stores = 0
        self.load_hits = 0
        self.load_misses = 0
        self.store_hits = 0
        self.store_misses = 0
        self.total_cycles = 0

    def record_load(self, hit: bool):
        if hit:
            self.load_hits += 1
        else:
            self.load_misses += 1

    def record_store(self, hit: bool):
        if hit:
            self.store_hits += 1
        else:
            self.store_misses += 1

    @property
    def accesses(self):
        return self.total_loads + self.total_stores

    @property
    def hits(self):
        return self.load_hits + self.store_hits

    @property
    def misses(self):
        return self.load_misses + self.store_misses

    @property
    def hit_rate(self):
        return (self.hits / self.accesses) if self.accesses else 0.0

    @property
    def miss_rate(self):
        return (self.misses / self.accesses) if self.accesses else 0.0

    @property
    def load_hit_rate(self):
        return (self.load_hits / self.total_loads) if self.total_loads else 0.0

    @property
    def store_hit_rate(self):
        return (self.store_hits / self.total_stores) if self.total_stores else 0.0

    def as_dict(self) -> Dict[str, float]:
        data = {attr: getattr(self, attr) for _, attr in REPORT_FIELDS}
        data['hit_rate'] = self.hit_rate
        data['miss_rate'] = self.miss_rate
        return data


def format_report(stats: Statistics) -> str:
    """Render the fixed seven-line summary, one `Label: value` per line."""
    return '\n'.join(f"{label}: {getattr(stats, attr)}" for label, attr in REPORT_FIELDS)


def export_chart_pdf(stats: Statistics, fpath: str) -> str:
    """Render load/store hits and misses as a bar chart and save it as PDF.

    Returns the saved file path.
    """
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    labels = ['Loads', 'Stores']
    hits = [stats.load_hits, stats.store_hits]
    misses = [stats.load_misses, stats.store_misses]
    fig, ax = plt.subplots(figsize=(6, 3))
    ax.bar(labels, hits, color='#4CAF50', label='hits')
    ax.bar(labels, misses, bottom=hits, color='#FFA500', label='misses')
    ax.set_ylabel('Accesses')
    ax.set_title(f"Hit rate {stats.hit_rate:.2%}, {stats.total_cycles} cycles")
    ax.legend()
    fig.tight_layout()
    try:
        fig.savefig(fpath, format='pdf', dpi=150)
    finally:
        plt.close(fig)
    logger.info("chart written to %s", fpath)
    return fpath


class Exporter:
    @staticmethod
    def export_stats_csv(path: str, stats: Statistics):
        data = stats.as_dict()
        with open(path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(list(data))
            writer.writerow(list(data.values()))
        logger.info("stats written to %s", path)

    @staticmethod
    def export_stats_json(path: str, stats: Statistics, config: Optional[Dict] = None):
        data = {'stats': stats.as_dict()}
        if config is not None:
            data['config'] = config
        with open(path, 'w', encoding='utf-8') as fh:
            json.dump(data, fh, indent=2)
        logger.info("stats written to %s", path)
