"""Compile preprocessed WGSL with wgpu to catch shader errors early."""

from __future__ import annotations


class ShaderValidationError(Exception):
    pass


def _require_wgpu():
    try:
        import wgpu
    except ImportError:
        raise ImportError(
            "The 'wgpu' package is required for WGSL validation.\n"
            "Install it with: pip install 'wgslpp[gpu]' or pip install wgpu"
        )
    return wgpu


def request_device():
    """Return a wgpu device from the default adapter, or None if there is none."""
    wgpu = _require_wgpu()
    adapter = wgpu.gpu.request_adapter_sync(power_preference="low-power")
    if adapter is None:
        return None
    return adapter.request_device_sync()


def validate_wgsl(code: str, label: str = "", device=None) -> None:
    """Compile *code* as a WGSL module, raising ShaderValidationError on failure."""
    if device is None:
        device = request_device()
        if device is None:
            raise ShaderValidationError("No GPU adapter available for WGSL validation")
    try:
        device.create_shader_module(label=label, code=code)
    except Exception as e:
        raise ShaderValidationError(f"WGSL validation failed for '{label}':\n{e}") from e
