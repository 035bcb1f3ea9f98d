"""Process, shell, and template plumbing used by the service layer."""
