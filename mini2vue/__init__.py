"""Alipay mini-program to Vue project converter"""
