"""Feature modules of the multisig coordinator.

- fingerprint: Transaction fingerprints and operation summaries
- chunking: QR chunk codec, rendering and camera scanning
- weights: Signer weights, thresholds and account configuration
- signatures: Merging signatures returned by signing devices
- session: Coordination state machine for one pending transaction
- account: Loading account configuration from Horizon
- submission: Submitting fully signed envelopes
"""
