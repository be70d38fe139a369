"""Reporting for the Rahunu loan registry

This package aggregates live (not soft-deleted) registry entries into
summary, detailed and branch-performance reports, and renders them as CSV,
XLSX or PDF downloads or as a JSON preview. Any authenticated role may
request a report.

Filters arriving from the client are normalized leniently: values that do
not parse are ignored rather than rejected. Report and preview handlers
delegate to service functions that contain the actual logic."""
