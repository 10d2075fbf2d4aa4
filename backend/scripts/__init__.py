"""
Backend Scripts Module

This module contains utility scripts for database maintenance.

Available scripts:
    - recompute_metrics.py: Recomputes stored downtime buckets from milestones

Usage:
    python -m scripts.recompute_metrics --since 2024-01-01 --dry-run
"""
