#!/usr/bin/env python3
"""
🐧 PNGN Colormap Generator - Configuration Module
=================================================
Copyright (c) 2025 PNGN-Tec LLC

Centralized Configuration System
=================================
Complete configuration for lighting colormap generation including:
- Fixed palette and colormap dimensions
- Light level and fullbright constants
- Generator, cache and output settings
- Environment variable overrides
- Runtime reload with change callbacks

Configuration Overview
======================
The numeric transform never reads this module's runtime state. Only the
command line tool, the worker pool size and the match cache consult the
configuration manager, so the generated colormap is a pure function of the
palette (and of an explicit fullbright count).

Environment Overrides
=====================
- PNGN_FULLBRIGHTS: number of fullbright entries at the top of the palette
- PNGN_MAX_THREADS: worker threads used for light level rows
- PNGN_MATCH_CACHE_SIZE: entries kept in the color match cache
- PNGN_CACHE_ENABLED: master switch for the match cache
- PNGN_COLORMAP_OUTPUT: default colormap file name
- PNGN_PREVIEW_SCALE: pixel scale of preview images
- PNGN_LOG_LEVEL: logging level name
- PNGN_DEBUG: debug mode flag
"""

import threading
import logging
import os
from typing import Tuple, Optional, Callable
from dataclasses import dataclass, field

# Configure logging
logger = logging.getLogger('pngn_config')

# Type alias for RGB colors
RGBColor = Tuple[int, int, int]

# ============================================================================
# PALETTE DIMENSIONS
# ============================================================================

PALETTE_COLORS = 256     # Entries in every palette
PALETTE_CHANNELS = 3     # R, G, B
PALETTE_BYTES = PALETTE_COLORS * PALETTE_CHANNELS  # 768

# ============================================================================
# COLORMAP DIMENSIONS
# ============================================================================

NUM_LEVELS = 64          # Light levels, 0 = brightest, 63 = darkest
NUM_FULLBRIGHT = 32      # Top palette entries exempt from lighting
COLORMAP_BYTES = NUM_LEVELS * PALETTE_COLORS  # 16384

# Darkening arithmetic: (value * (63 - level) + 16) >> 5
DIM_SHIFT = 5
DIM_BIAS = 1 << (DIM_SHIFT - 1)
CHANNEL_MAX = 255

# ============================================================================
# FILE DEFAULTS
# ============================================================================

DEFAULT_COLORMAP_NAME = "colormap.lmp"
PALETTE_IMAGE_MAX_SIDE = 16

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ============================================================================
# GENERATOR CONFIGURATION
# ============================================================================

@dataclass
class GeneratorConfig:
    """
    Colormap generator parameters.

    Attributes:
        num_fullbright: Palette entries at the top left undimmed
        max_worker_threads: Worker threads for light level rows (1 = serial)
    """

    num_fullbright: int = NUM_FULLBRIGHT
    max_worker_threads: int = 1

    def validate(self) -> bool:
        """Validate generator configuration"""
        if not 0 <= self.num_fullbright <= PALETTE_COLORS:
            raise ValueError(f"Fullbright count must be between 0 and {PALETTE_COLORS}")
        if self.max_worker_threads <= 0:
            raise ValueError("Max worker threads must be positive")
        return True


# ============================================================================
# CACHE CONFIGURATION
# ============================================================================

@dataclass
class CacheConfig:
    """Color match cache parameters"""

    # Size limits
    match_cache_size: int = 4096

    # Feature flags
    enable_caching: bool = True

    def validate(self) -> bool:
        """Validate cache configuration"""
        if self.match_cache_size <= 0:
            raise ValueError("Match cache size must be positive")
        return True


# ============================================================================
# OUTPUT CONFIGURATION
# ============================================================================

@dataclass
class OutputConfig:
    """Output file settings"""

    colormap_filename: str = DEFAULT_COLORMAP_NAME
    preview_scale: int = 1

    def validate(self) -> bool:
        """Validate output configuration"""
        if not self.colormap_filename:
            raise ValueError("Colormap filename must not be empty")
        if self.preview_scale <= 0:
            raise ValueError("Preview scale must be positive")
        return True


# ============================================================================
# MAIN CONFIGURATION CLASS
# ============================================================================

@dataclass
class ColormapSystemConfig:
    """Complete system configuration"""

    # Sub-configurations
    generator: GeneratorConfig = field(default_factory=GeneratorConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # System-wide settings
    debug_mode: bool = False
    log_level: str = "INFO"

    def validate(self) -> bool:
        """Validate entire configuration"""
        self.generator.validate()
        self.cache.validate()
        self.output.validate()
        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")
        return True


# ============================================================================
# CONFIGURATION MANAGER (SINGLETON)
# ============================================================================

class ConfigurationManager:
    """
    Singleton configuration manager with runtime reloading.
    Thread-safe management of global configuration with change notifications.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._config = self._build_config()
        self._callbacks = []
        self._config_lock = threading.RLock()

        self._initialized = True
        logger.info("Configuration manager initialized")

    def _build_config(self) -> ColormapSystemConfig:
        """Defaults plus environment overrides, or plain defaults if those are invalid"""
        config = ColormapSystemConfig()
        try:
            self._load_environment_overrides(config)
            config.validate()
        except ValueError as e:
            logger.error(f"Invalid environment configuration, using defaults: {e}")
            config = ColormapSystemConfig()
        return config

    @staticmethod
    def _load_environment_overrides(config: ColormapSystemConfig):
        """Load configuration overrides from environment variables"""

        # Generator settings
        if 'PNGN_FULLBRIGHTS' in os.environ:
            config.generator.num_fullbright = int(os.environ['PNGN_FULLBRIGHTS'])
        if 'PNGN_MAX_THREADS' in os.environ:
            config.generator.max_worker_threads = int(os.environ['PNGN_MAX_THREADS'])

        # Cache settings
        if 'PNGN_MATCH_CACHE_SIZE' in os.environ:
            config.cache.match_cache_size = int(os.environ['PNGN_MATCH_CACHE_SIZE'])
        if 'PNGN_CACHE_ENABLED' in os.environ:
            config.cache.enable_caching = os.environ['PNGN_CACHE_ENABLED'].lower() in ('true', '1', 'yes')

        # Output settings
        if 'PNGN_COLORMAP_OUTPUT' in os.environ:
            config.output.colormap_filename = os.environ['PNGN_COLORMAP_OUTPUT']
        if 'PNGN_PREVIEW_SCALE' in os.environ:
            config.output.preview_scale = int(os.environ['PNGN_PREVIEW_SCALE'])

        # Logging and debug mode
        if 'PNGN_LOG_LEVEL' in os.environ:
            config.log_level = os.environ['PNGN_LOG_LEVEL'].upper()
        if 'PNGN_DEBUG' in os.environ:
            config.debug_mode = os.environ['PNGN_DEBUG'].lower() in ('true', '1', 'yes')

    @property
    def config(self) -> ColormapSystemConfig:
        """Get current configuration"""
        with self._config_lock:
            return self._config

    def reload(self, new_config: Optional[ColormapSystemConfig] = None) -> bool:
        """
        Reload configuration and notify callbacks.

        Args:
            new_config: New configuration to apply (rebuilds from env if None)

        Returns:
            True if reload successful
        """
        with self._config_lock:
            old_config = self._config

            try:
                if new_config is None:
                    new_config = ColormapSystemConfig()
                    self._load_environment_overrides(new_config)
                new_config.validate()
                self._config = new_config
            except ValueError as e:
                logger.error(f"Configuration reload failed: {e}")
                self._config = old_config
                return False

            self._notify_callbacks(old_config, self._config)
            logger.info("Configuration reloaded successfully")
            return True

    def register_callback(self, callback: Callable[[ColormapSystemConfig, ColormapSystemConfig], None]):
        """
        Register callback for configuration changes.

        Args:
            callback: Function called with (old_config, new_config)
        """
        self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable):
        """Remove a registered callback"""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify_callbacks(self, old_config: ColormapSystemConfig, new_config: ColormapSystemConfig):
        """Notify all registered callbacks of configuration change"""
        for callback in list(self._callbacks):
            try:
                callback(old_config, new_config)
            except Exception as e:
                logger.error(f"Callback notification failed: {e}")


# ============================================================================
# PUBLIC API FUNCTIONS
# ============================================================================

_manager = ConfigurationManager()

def get_config() -> ColormapSystemConfig:
    """Get current system configuration"""
    return _manager.config

def reload_config(new_config: Optional[ColormapSystemConfig] = None) -> bool:
    """Reload system configuration"""
    return _manager.reload(new_config)

def register_config_callback(callback: Callable[[ColormapSystemConfig, ColormapSystemConfig], None]):
    """Register for configuration change notifications"""
    _manager.register_callback(callback)

def unregister_config_callback(callback: Callable):
    """Unregister a configuration change callback"""
    _manager.unregister_callback(callback)

def get_generator_config() -> GeneratorConfig:
    """Get generator configuration"""
    return _manager.config.generator

def get_cache_config() -> CacheConfig:
    """Get cache configuration"""
    return _manager.config.cache

def get_output_config() -> OutputConfig:
    """Get output configuration"""
    return _manager.config.output
