"""Tests for islet_release.targets (registry, layout, config)."""

from pathlib import Path

import pytest

from islet_release.errors import ConfigError, InvalidTargetDescriptor, UnknownTarget
from islet_release.targets import (
    NATIVE,
    SECONDARY_ARCH,
    TargetDescriptor,
    TargetRegistry,
    build_registry,
    default_targets,
    resolve_config_path,
    resolve_layout,
    with_toolchain_override,
)


class TestDefaultTargets:
    def test_declaration_order_secondary_then_native(self, tmp_path: Path) -> None:
        reg = TargetRegistry(default_targets(tmp_path))
        assert reg.names() == [SECONDARY_ARCH, NATIVE]

    def test_every_registered_target_satisfies_invariants(self, tmp_path: Path) -> None:
        reg = TargetRegistry(default_targets(tmp_path))
        for name in reg.names():
            d = reg.lookup(name)
            if d.name == NATIVE:
                assert d.triple is None
                assert d.toolchain_path is None
                assert not d.extra_env
            else:
                assert d.triple
                assert d.toolchain_path is not None

    def test_secondary_arch_uses_static_openssl_and_shared_dir(self, tmp_path: Path) -> None:
        d = TargetRegistry(default_targets(tmp_path)).lookup(SECONDARY_ARCH)
        assert d.triple == "aarch64-unknown-linux-gnu"
        assert d.extra_env["OPENSSL_STATIC"] == "1"
        assert d.extra_env["OPENSSL_LIB_DIR"] == str(tmp_path / "assets/openssl/lib")
        assert d.extra_env["OPENSSL_INCLUDE_DIR"] == str(tmp_path / "assets/openssl/include")
        assert d.dest_dir == tmp_path / "out/shared"
        assert d.dest_name == "islet"

    def test_native_installs_in_tree(self, tmp_path: Path) -> None:
        d = TargetRegistry(default_targets(tmp_path)).lookup(NATIVE)
        assert d.dest_dir == tmp_path / "cli"
        assert d.dest_name == "islet"

    def test_layout_overrides_apply(self, tmp_path: Path) -> None:
        layout = resolve_layout({"shared_dir": "dist", "installed_name": "islet2", "bogus": "x"})
        assert "bogus" not in layout
        d = TargetRegistry(default_targets(tmp_path, layout)).lookup(SECONDARY_ARCH)
        assert d.dest_dir == tmp_path / "dist"
        assert d.dest_name == "islet2"


class TestLookup:
    def test_unknown_target_raises(self, tmp_path: Path) -> None:
        reg = TargetRegistry(default_targets(tmp_path))
        with pytest.raises(UnknownTarget) as exc:
            reg.lookup("nonexistent")
        assert exc.value.target == "nonexistent"
        assert "native" in str(exc.value)

    def test_contains_and_len(self, tmp_path: Path) -> None:
        reg = TargetRegistry(default_targets(tmp_path))
        assert NATIVE in reg
        assert "nonexistent" not in reg
        assert len(reg) == 2


class TestValidation:
    def test_native_with_extra_env_rejected(self, tmp_path: Path) -> None:
        d = TargetDescriptor(NATIVE, None, tmp_path, "islet", extra_env={"X": "1"})
        with pytest.raises(InvalidTargetDescriptor):
            TargetRegistry([d])

    def test_native_with_triple_rejected(self, tmp_path: Path) -> None:
        d = TargetDescriptor(NATIVE, "x86_64-unknown-linux-gnu", tmp_path, "islet")
        with pytest.raises(InvalidTargetDescriptor):
            TargetRegistry([d])

    def test_cross_without_toolchain_rejected(self, tmp_path: Path) -> None:
        d = TargetDescriptor("arm", "aarch64-unknown-linux-gnu", tmp_path, "islet")
        with pytest.raises(InvalidTargetDescriptor):
            TargetRegistry([d])

    def test_path_env_key_must_be_in_extra_env(self, tmp_path: Path) -> None:
        d = TargetDescriptor(
            "arm",
            "aarch64-unknown-linux-gnu",
            tmp_path,
            "islet",
            toolchain_path=Path("/tools/cc"),
            path_env_keys=("LIB_DIR",),
        )
        with pytest.raises(InvalidTargetDescriptor):
            TargetRegistry([d])

    def test_duplicate_names_rejected(self, tmp_path: Path) -> None:
        d = TargetDescriptor(NATIVE, None, tmp_path, "islet")
        with pytest.raises(InvalidTargetDescriptor):
            TargetRegistry([d, d])

    def test_extra_env_is_read_only(self, tmp_path: Path) -> None:
        env = {"OPENSSL_STATIC": "1"}
        d = TargetDescriptor(
            "arm",
            "armv7-unknown-linux-gnueabihf",
            tmp_path,
            "islet",
            toolchain_path=Path("/tools/cc"),
            extra_env=env,
        )
        env["OPENSSL_STATIC"] = "0"
        assert d.extra_env["OPENSSL_STATIC"] == "1"
        with pytest.raises(TypeError):
            d.extra_env["OPENSSL_STATIC"] = "0"


class TestToolchainOverride:
    def test_override_from_ambient(self, tmp_path: Path) -> None:
        d = TargetRegistry(default_targets(tmp_path)).lookup(SECONDARY_ARCH)
        out = with_toolchain_override(d, {"ISLET_AARCH64_TOOLCHAIN": "/opt/cross/bin/gcc"})
        assert out.toolchain_path == Path("/opt/cross/bin/gcc")
        assert d.toolchain_path != out.toolchain_path

    def test_no_override_returns_same_descriptor(self, tmp_path: Path) -> None:
        d = TargetRegistry(default_targets(tmp_path)).lookup(SECONDARY_ARCH)
        assert with_toolchain_override(d, {}) is d

    def test_native_ignores_override(self, tmp_path: Path) -> None:
        d = TargetRegistry(default_targets(tmp_path)).lookup(NATIVE)
        assert with_toolchain_override(d, {"ISLET_AARCH64_TOOLCHAIN": "/x"}) is d


class TestBuildRegistry:
    def test_without_config_returns_defaults(self, tmp_path: Path) -> None:
        reg, layout = build_registry(tmp_path)
        assert reg.names() == [SECONDARY_ARCH, NATIVE]
        assert layout["workspace_dir"] == "cli"

    def test_config_adds_and_replaces_targets(self, tmp_path: Path) -> None:
        cfg = tmp_path / "release.yaml"
        cfg.write_text(
            """
layout:
  shared_dir: dist/shared
targets:
  riscv:
    triple: riscv64gc-unknown-linux-gnu
    toolchain: tools/riscv-gcc
    env:
      OPENSSL_STATIC: 1
      OPENSSL_LIB_DIR: deps/riscv/lib
    path_env: [OPENSSL_LIB_DIR]
    dest_name: islet-riscv
  native:
    dest_dir: bin
"""
        )
        reg, layout = build_registry(tmp_path, cfg)
        assert reg.names() == [SECONDARY_ARCH, NATIVE, "riscv"]
        assert layout["shared_dir"] == "dist/shared"
        riscv = reg.lookup("riscv")
        assert riscv.toolchain_path == tmp_path / "tools/riscv-gcc"
        assert riscv.extra_env == {
            "OPENSSL_STATIC": "1",
            "OPENSSL_LIB_DIR": str(tmp_path / "deps/riscv/lib"),
        }
        assert riscv.dest_dir == tmp_path / "dist/shared"
        assert riscv.dest_name == "islet-riscv"
        assert reg.lookup(NATIVE).dest_dir == tmp_path / "bin"

    def test_missing_config_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            build_registry(tmp_path, tmp_path / "missing.yaml")

    def test_non_mapping_config_raises(self, tmp_path: Path) -> None:
        cfg = tmp_path / "release.yaml"
        cfg.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            build_registry(tmp_path, cfg)

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        cfg = tmp_path / "release.yaml"
        cfg.write_text("targets: [unclosed\n")
        with pytest.raises(ConfigError):
            build_registry(tmp_path, cfg)

    def test_config_target_violating_invariants_raises(self, tmp_path: Path) -> None:
        cfg = tmp_path / "release.yaml"
        cfg.write_text("targets:\n  arm:\n    triple: armv7-unknown-linux-gnueabihf\n")
        with pytest.raises(InvalidTargetDescriptor):
            build_registry(tmp_path, cfg)


class TestResolveConfigPath:
    def test_explicit_path_wins_over_environment(self, tmp_path: Path) -> None:
        explicit = tmp_path / "a.yaml"
        env = {"ISLET_RELEASE_CONFIG": "b.yaml"}
        assert resolve_config_path(tmp_path, explicit, env) == explicit

    def test_environment_value_relative_to_root(self, tmp_path: Path) -> None:
        env = {"ISLET_RELEASE_CONFIG": "conf/release.yaml"}
        assert resolve_config_path(tmp_path, None, env) == tmp_path / "conf/release.yaml"

    def test_none_without_flag_or_environment(self, tmp_path: Path) -> None:
        assert resolve_config_path(tmp_path, None, {"ISLET_RELEASE_CONFIG": ""}) is None
