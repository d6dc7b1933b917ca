"""Pydantic configuration models for all system settings."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class DriftBand(BaseModel):
    """Hard bounds and volatility for one drifting quantity."""

    lo: float
    hi: float
    volatility: float = Field(0.0, ge=0.0)

    @model_validator(mode="after")
    def _check_bounds(self) -> DriftBand:
        if self.lo > self.hi:
            raise ValueError(f"band lower bound {self.lo} exceeds upper bound {self.hi}")
        return self


class SourceBandsConfig(BaseModel):
    voltage: DriftBand
    current: DriftBand


class SimulationConfig(BaseModel):
    tick_interval_seconds: float = Field(1.0, gt=0.0)
    seed: int | None = None  # None = nondeterministic
    dt_scale: float = Field(0.0001, ge=0.0)  # power -> energy per tick
    cut_in_voltage: float = Field(5.0, ge=0.0)
    solar: SourceBandsConfig = SourceBandsConfig(
        voltage=DriftBand(lo=0.0, hi=24.0, volatility=0.5),
        current=DriftBand(lo=0.0, hi=15.0, volatility=0.2),
    )
    wind: SourceBandsConfig = SourceBandsConfig(
        voltage=DriftBand(lo=0.0, hi=24.0, volatility=1.5),
        current=DriftBand(lo=0.0, hi=20.0, volatility=0.5),
    )
    battery_voltage: DriftBand = DriftBand(lo=11.5, hi=14.4, volatility=0.05)
    battery_temperature: DriftBand = DriftBand(lo=20.0, hi=45.0, volatility=0.1)
    battery_health: float = Field(97.0, ge=0.0, le=100.0)
    battery_nominal_voltage: float = Field(12.0, gt=0.0)
    grid_nominal_voltage: float = Field(230.0, gt=0.0)
    grid_voltage: DriftBand = DriftBand(lo=228.0, hi=232.0, volatility=0.2)
    grid_frequency: DriftBand = DriftBand(lo=49.9, hi=50.1, volatility=0.02)
    grid_nominal_frequency: float = 50.0
    ac_voltage: DriftBand = DriftBand(lo=225.0, hi=235.0, volatility=0.5)
    ac_frequency: DriftBand = DriftBand(lo=49.8, hi=50.2, volatility=0.05)
    ac_nominal_voltage: float = Field(230.0, gt=0.0)
    power_factor: float = Field(0.96, gt=0.0, le=1.0)


class BatteryConfig(BaseModel):
    max_charge_rate_w: float = Field(500.0, ge=0.0)
    max_discharge_rate_w: float = Field(500.0, ge=0.0)
    charge_ceiling_soc: float = Field(98.0, ge=0.0, le=100.0)  # charge only below
    discharge_floor_soc: float = Field(10.0, ge=0.0, le=100.0)  # discharge only above
    soc_integration_per_w: float = Field(0.0005, ge=0.0)
    idle_deadband_w: float = Field(5.0, ge=0.0)
    idle_exit_w: float | None = None  # None = plain dead-band, no hysteresis

    @model_validator(mode="after")
    def _check_hysteresis(self) -> BatteryConfig:
        if self.idle_exit_w is not None and self.idle_exit_w < self.idle_deadband_w:
            raise ValueError("idle_exit_w must be >= idle_deadband_w")
        return self


class LoadsConfig(BaseModel):
    critical: DriftBand = DriftBand(lo=280.0, hi=320.0, volatility=2.0)
    hvac: DriftBand = DriftBand(lo=0.0, hi=1500.0, volatility=10.0)
    lighting: DriftBand = DriftBand(lo=50.0, hi=150.0, volatility=1.0)
    aux: DriftBand = DriftBand(lo=20.0, hi=200.0, volatility=5.0)


class AlertsConfig(BaseModel):
    low_soc_pct: float = Field(20.0, ge=0.0, le=100.0)
    ac_voltage_high_v: float = 250.0
    notification_capacity: int = Field(5, ge=1)


class HistoryConfig(BaseModel):
    window_size: int = Field(30, ge=1)


class WeatherConfig(BaseModel):
    seed: int | None = None
    temp_c: float = 24.0
    cloud_cover_pct: float = Field(45.0, ge=0.0, le=100.0)
    wind_speed_ms: float = Field(5.5, ge=0.0)
    irradiance_wm2: float = Field(600.0, ge=0.0)
    rain_probability_pct: float = Field(10.0, ge=0.0, le=100.0)
    forecast_days: int = Field(7, ge=1, le=14)
    history_days: int = Field(30, ge=1, le=365)


class UserConfig(BaseModel):
    username: str
    password_hash: str  # format: "salt_hex:sha256_hex"
    role: str = "user"  # "admin", "manager" or "user"
    display_name: str = ""
    enabled: bool = True


class AuthConfig(BaseModel):
    users: list[UserConfig] = Field(default_factory=list)  # Empty = auth disabled
    session_secret: str = ""  # Auto-generated on first authenticated startup
    session_max_age_seconds: int = 86400  # 24 hours


class DashboardConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080
    sse_interval_seconds: float = Field(1.0, gt=0.0)
    auth: AuthConfig = AuthConfig()


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "json"
    file: str = ""


class AppConfig(BaseModel):
    """Root configuration model containing all system settings."""

    simulation: SimulationConfig = SimulationConfig()
    battery: BatteryConfig = BatteryConfig()
    loads: LoadsConfig = LoadsConfig()
    alerts: AlertsConfig = AlertsConfig()
    history: HistoryConfig = HistoryConfig()
    weather: WeatherConfig = WeatherConfig()
    dashboard: DashboardConfig = DashboardConfig()
    logging: LoggingConfig = LoggingConfig()
