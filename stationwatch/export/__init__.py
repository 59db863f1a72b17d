"""Export of aggregated history."""

from .csv_writer import export_buckets, export_filename, write_buckets_csv

__all__ = ["export_buckets", "export_filename", "write_buckets_csv"]
