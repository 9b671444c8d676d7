"""Flask CLI command groups for Review Tracker."""
