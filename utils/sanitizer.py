"""
Data sanitization utilities for logging sensitive information
"""
import re
import json
from typing import Optional, Dict, Any

class DataSanitizer:
    """Sanitize sensitive data before it is written to the log tables"""

    # Field names whose values never reach the logs
    SENSITIVE_FIELDS = {
        'password', 'token', 'secret', 'authorization', 'jwt', 'bearer',
        'account_number', 'gstin'
    }

    SENSITIVE_PATTERNS = [
        (r'Bearer\s+[\w\-\.]+', 'Bearer [REDACTED]'),
        (r'"password"\s*:\s*"[^"]*"', '"password":"[REDACTED]"'),
        (r'"account_number"\s*:\s*"[^"]*"', '"account_number":"[REDACTED]"'),
    ]

    MAX_BODY_SIZE = 10000

    @staticmethod
    def sanitize_dict(data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively sanitize dictionary data"""
        if not isinstance(data, dict):
            return data

        sanitized = {}
        for key, value in data.items():
            if any(sensitive in key.lower() for sensitive in DataSanitizer.SENSITIVE_FIELDS):
                sanitized[key] = "[REDACTED]"
            elif isinstance(value, dict):
                sanitized[key] = DataSanitizer.sanitize_dict(value)
            elif isinstance(value, list):
                sanitized[key] = [
                    DataSanitizer.sanitize_dict(item) if isinstance(item, dict) else item
                    for item in value
                ]
            else:
                sanitized[key] = value

        return sanitized

    @staticmethod
    def sanitize_string(text: Optional[str]) -> Optional[str]:
        """Sanitize sensitive patterns from string data"""
        if not text:
            return text

        if len(text) > DataSanitizer.MAX_BODY_SIZE:
            text = text[:DataSanitizer.MAX_BODY_SIZE] + "...[TRUNCATED]"

        for pattern, replacement in DataSanitizer.SENSITIVE_PATTERNS:
            text = re.sub(pattern, replacement, text, flags=re.IGNORECASE)

        return text

    @staticmethod
    def to_json(data: Optional[Dict[str, Any]]) -> Optional[str]:
        """Sanitize a details dict and serialise it for a Text column"""
        if not data:
            return None
        result = json.dumps(DataSanitizer.sanitize_dict(data), default=str)
        if len(result) > DataSanitizer.MAX_BODY_SIZE:
            result = result[:DataSanitizer.MAX_BODY_SIZE] + "...[TRUNCATED]"
        return result
