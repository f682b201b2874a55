#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Logging Utilities Module
This module contains common logging utility functions to reduce code duplication.
"""

import logging
from typing import Dict, Any


def log_service_init(service_name: str, settings: Dict[str, Any], log_level: int = logging.INFO) -> None:
    """
    Log service initialization with standardized format.
    
    Args:
        service_name: Name of the service being initialized
        settings: Dictionary containing service settings
        log_level: Logging level (default: logging.INFO)
    """
    logging.log(log_level, f"{service_name} initialized with settings: {settings}")


def log_service_update(service_name: str, settings: Dict[str, Any], log_level: int = logging.INFO) -> None:
    """
    Log service settings update with standardized format.
    
    Args:
        service_name: Name of the service being updated
        settings: Dictionary containing updated service settings
        log_level: Logging level (default: logging.INFO)
    """
    logging.log(log_level, f"{service_name} settings updated: {settings}")


def log_batch_summary(service_name: str, total: int, succeeded: int,
                      log_level: int = logging.INFO) -> None:
    """
    Log the outcome of a batch triangulation run.

    Args:
        service_name: Name of the service that ran the batch
        total: Number of tracks processed
        succeeded: Number of tracks triangulated successfully
        log_level: Logging level (default: logging.INFO)
    """
    ratio = succeeded / total if total else 0.0
    logging.log(log_level, f"{service_name} triangulated {succeeded}/{total} tracks ({ratio:.1%})")
