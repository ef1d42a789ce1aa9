"""Services: lifecycle, patch formatting, workspaces, git, integration jobs, store."""
