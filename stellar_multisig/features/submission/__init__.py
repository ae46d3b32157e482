"""Submission collaborators."""

from stellar_multisig.features.submission.service import HorizonSubmitter, Submitter

__all__ = ["HorizonSubmitter", "Submitter"]
