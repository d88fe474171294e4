"""Viewer-side contract: animator and terminal viewer."""
