"""Appliance job scheduling and timing API"""
