"""
Output module for statement reports.
"""
from .report_generator import generate_report_excel, generate_report_json

__all__ = ['generate_report_excel', 'generate_report_json']
