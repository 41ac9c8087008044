"""
mps-provision — Apple Silicon (MPS) environment provisioning for Chatterbox TTS.

Detects or installs Homebrew and a compatible Python, optionally creates a
virtual environment, then installs the pinned dependency set step by step.
"""

__version__ = "0.1.0"
