"""
Sign Recognition Core
=====================

Single-frame sign-language gesture recognition from 21 hand landmarks.

Modules:
    - core: gesture taxonomy, result types, landmark validation
    - models: feature extraction, feed-forward inference, hybrid policy,
      scaler-fed MLP variant
    - modules.recognition: geometric rule classifier
    - modules.utils: configuration and logging
"""

__version__ = "1.0.0"
