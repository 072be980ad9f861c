"""Feature flags gating optional settings."""

import configparser
from dataclasses import dataclass, fields

from .models import VPNType


@dataclass(frozen=True)
class FeatureFlags:
    protocol_selection: bool = True
    encryption_settings: bool = True
    remote_port_setting: bool = True
    mace: bool = True
    reset_settings: bool = True
    development_settings: bool = False

    def enables_mace(self, vpn_type: VPNType) -> bool:
        """MACE is only offered over the OpenVPN tunnel."""
        return self.mace and vpn_type is VPNType.OPENVPN

    @classmethod
    def from_section(cls, section: configparser.SectionProxy) -> "FeatureFlags":
        values = {}
        for f in fields(cls):
            if f.name in section:
                values[f.name] = section.getboolean(f.name)
        return cls(**values)
