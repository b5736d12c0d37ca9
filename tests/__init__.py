"""
Test suite for sqlalter.

This package contains unit tests for all sqlalter components:
- Snapshots and operation requests
- The alter table planner
- Configuration and the command line interface
"""
