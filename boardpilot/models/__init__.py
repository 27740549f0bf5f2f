"""Value records and action argument schemas."""
