"""Audio playback building blocks: conversion, dithering, volume, Ogg passthrough and sinks."""

__version__ = "0.1.0"