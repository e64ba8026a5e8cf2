# -*- coding: utf-8 -*-
"""
Rate limiting monitoring and statistics tracking for field report sync.

This module provides classes for monitoring Graph API throttling headers and
counting what a run actually wrote to SharePoint.
"""

import threading

from .utils import is_debug_enabled


class RateLimitMonitor:
    """
    Monitor and track Graph API rate limiting metrics.

    Analyzes response headers to detect throttling:
    - x-ms-throttle-limit-percentage: Utilization percentage (0.8-1.8 range)
    - x-ms-resource-unit: Resource units consumed per request
    - x-ms-throttle-scope: Throttling scope details

    Headers only appear when >80% of limit consumed. Probes and the background
    priming pass share this monitor with submissions, so updates are locked.
    """

    def __init__(self):
        """Initialize rate limit monitoring metrics"""
        self._lock = threading.Lock()
        self.throttle_threshold = 0.8  # Alert when >80% of limit
        self.reset()

    def reset(self):
        with self._lock:
            self.metrics = {
                'total_requests': 0,
                'throttled_requests': 0,
                'max_throttle_percentage': 0.0,
                'resource_units_consumed': 0,
                'alerts_triggered': 0
            }

    def analyze_response_headers(self, response):
        """
        Analyze Graph API response headers for rate limiting info.

        Args:
            response: requests.Response object from Graph API call

        Returns:
            dict: Rate limiting information extracted from headers
        """
        headers = response.headers or {}
        throttle_percentage = headers.get('x-ms-throttle-limit-percentage')
        resource_unit = headers.get('x-ms-resource-unit')
        throttle_scope = headers.get('x-ms-throttle-scope')

        with self._lock:
            self.metrics['total_requests'] += 1

            if throttle_percentage:
                percentage = float(throttle_percentage)
                self.metrics['max_throttle_percentage'] = max(
                    self.metrics['max_throttle_percentage'],
                    percentage
                )

                if percentage >= 1.0:
                    self.metrics['throttled_requests'] += 1
                    print(f"[!] THROTTLING DETECTED: {percentage:.1%} of limit used")
                    if throttle_scope:
                        print(f"[!] Throttle scope: {throttle_scope}")
                elif percentage >= self.throttle_threshold:
                    self.metrics['alerts_triggered'] += 1
                    print(f"[ ] Rate limit warning: {percentage:.1%} of limit used")

            if resource_unit:
                units = int(resource_unit)
                self.metrics['resource_units_consumed'] += units
                if is_debug_enabled():
                    print(f"[=] Resource units consumed: {units}")

        return {
            'throttle_percentage': float(throttle_percentage) if throttle_percentage else None,
            'resource_unit': int(resource_unit) if resource_unit else None,
            'throttle_scope': throttle_scope,
            'is_throttled': response.status_code == 429
        }

    def get_metrics_summary(self):
        """
        Get comprehensive rate limiting metrics.

        Returns:
            dict: Summary of all rate limiting metrics
        """
        with self._lock:
            metrics = dict(self.metrics)
        metrics['throttle_rate'] = metrics['throttled_requests'] / max(metrics['total_requests'], 1)
        return metrics


# Global rate limit monitor instance
rate_monitor = RateLimitMonitor()


def print_rate_limiting_summary(monitor=None):
    """Print rate limiting statistics collected during execution."""
    metrics = (monitor or rate_monitor).get_metrics_summary()

    print("\n" + "="*60)
    print("GRAPH API RATE LIMITING SUMMARY")
    print("="*60)
    print(f"   - Total API Requests:       {metrics['total_requests']:>6}")
    print(f"   - Throttled Requests:       {metrics['throttled_requests']:>6} ({metrics['throttle_rate']:.1%})")
    print(f"   - Max Throttle %:           {metrics['max_throttle_percentage']:>6.1%}")
    print(f"   - Resource Units Used:      {metrics['resource_units_consumed']:>6}")
    print(f"   - Alerts Triggered:         {metrics['alerts_triggered']:>6}")

    if metrics['max_throttle_percentage'] >= 1.0:
        print(f"\n[!] WARNING: Hit throttling limits during execution")
    elif metrics['max_throttle_percentage'] >= 0.8:
        print(f"\n[ ] CAUTION: Approached throttling limits")
    else:
        print(f"\n[OK] Stayed within throttling limits")
    print("="*60)


class SubmissionStatistics:
    """Track what submissions wrote to SharePoint"""

    def __init__(self):
        """Initialize submission statistics"""
        self.stats = {
            'files_uploaded': 0,
            'bytes_uploaded': 0,
            'single_shot_uploads': 0,
            'chunked_uploads': 0,
            'chunks_sent': 0,
            'folders_created': 0,
            'records_created': 0,
            'failed_submissions': 0
        }

    def record_upload(self, size, chunks=0):
        self.stats['files_uploaded'] += 1
        self.stats['bytes_uploaded'] += size
        if chunks:
            self.stats['chunked_uploads'] += 1
            self.stats['chunks_sent'] += chunks
        else:
            self.stats['single_shot_uploads'] += 1

    def print_summary(self):
        """Print final summary report of submission statistics."""
        print(f"[STATS] Submission Statistics:")
        print(f"   - Records created:          {self.stats['records_created']:>6}")
        print(f"   - Failed submissions:       {self.stats['failed_submissions']:>6}")
        print(f"   - Files uploaded:           {self.stats['files_uploaded']:>6}")
        print(f"     (single-shot / chunked):  {self.stats['single_shot_uploads']:>6} / {self.stats['chunked_uploads']}")
        print(f"   - Chunks sent:              {self.stats['chunks_sent']:>6}")
        print(f"   - Folders created:          {self.stats['folders_created']:>6}")
        print(f"   - Data uploaded:            {format_bytes(self.stats['bytes_uploaded'])}")


def format_bytes(bytes_value):
    """
    Convert bytes to human-readable format.

    Args:
        bytes_value (int): Number of bytes to format

    Returns:
        str: Human-readable string (e.g., "1.5 MB")
    """
    for unit in ['B', 'KB', 'MB', 'GB']:
        if bytes_value < 1024.0:
            return f"{bytes_value:.1f} {unit}"
        bytes_value /= 1024.0
    return f"{bytes_value:.1f} TB"


# Global submission statistics instance
submission_stats = SubmissionStatistics()
