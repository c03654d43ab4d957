"""
Configuration settings for the E-Class report export service
"""

import os


class Config:
    """Base configuration class"""

    # Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'eclass-reports-secret-key-2024'

    # Request settings
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB max payload (logos may be inlined)

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'

    # Report settings
    REPORT_GROUP_NAMES = ['Group 1', 'Group 2', 'Group 3']
    REPORT_SENTINEL = '-'
    ORGANIZATION_NAME = os.environ.get('ORGANIZATION_NAME') or 'Organization Name'
    SYSTEM_SUBTITLE = 'School Management System'
    GENERATOR_LABEL = 'E-Class Software'
    EXPORT_DIRECTORY = os.environ.get('EXPORT_DIRECTORY') or 'exports'

    # Security settings
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = None
