"""Service layer package for application domain logic.

This package contains higher-level services that orchestrate DB access,
DST-aware scheduling, the approval workflow and Slack notifications.
"""
