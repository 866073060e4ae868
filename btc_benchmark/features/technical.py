"""
Technical indicators module.

Provides the indicators used as model features:
- Log returns
- RSI (Relative Strength Index, Wilder smoothing)
- SMA (Simple Moving Average)
- MACD (Moving Average Convergence Divergence) and its signal line

Indicators are undefined (NaN) until enough history exists to compute
them; they are never back-filled.
"""

import logging
from typing import List

import pandas as pd
import numpy as np

logger = logging.getLogger(__name__)

# Fixed by the feature table schema (rsi_14, sma_20, sma_50)
RSI_PERIOD = 14
SMA_PERIODS = [20, 50]


class TechnicalIndicators:
    """
    Technical analysis indicators for price data.

    All methods take a DataFrame and return a copy with the new
    indicator columns added.
    """

    @staticmethod
    def ema(series: pd.Series, period: int, wilder: bool = False) -> pd.Series:
        """
        Exponential moving average seeded with the SMA of the first window.

        Leading NaNs in ``series`` are skipped. The first defined value sits
        at the ``period``-th valid observation.

        Args:
            series: Input series
            period: Window length
            wilder: Use Wilder's smoothing (alpha = 1/period) instead of 2/(period+1)

        Returns:
            Series aligned with the input
        """
        alpha = 1.0 / period if wilder else 2.0 / (period + 1)
        result = pd.Series(np.nan, index=series.index, dtype=float)

        valid = series.dropna().astype(float)
        if len(valid) < period:
            return result

        seeded = valid.iloc[period - 1:].copy()
        seeded.iloc[0] = valid.iloc[:period].mean()

        result.loc[seeded.index] = seeded.ewm(alpha=alpha, adjust=False).mean()
        return result

    @staticmethod
    def log_returns(df: pd.DataFrame, column: str = 'close') -> pd.DataFrame:
        """
        Calculate one-period log returns.

        Args:
            df: DataFrame with price data
            column: Price column

        Returns:
            DataFrame with 'log_returns' column added
        """
        df = df.copy()
        df['log_returns'] = np.log(df[column] / df[column].shift(1))
        return df

    @staticmethod
    def sma(
        df: pd.DataFrame,
        column: str = 'close',
        periods: List[int] = [20, 50]
    ) -> pd.DataFrame:
        """
        Calculate Simple Moving Averages.

        Args:
            df: DataFrame with price data
            column: Column to calculate SMA on
            periods: List of periods for SMA

        Returns:
            DataFrame with SMA columns added
        """
        df = df.copy()

        for period in periods:
            df[f'sma_{period}'] = df[column].rolling(window=period).mean()

        return df

    @classmethod
    def rsi(
        cls,
        df: pd.DataFrame,
        column: str = 'close',
        period: int = 14
    ) -> pd.DataFrame:
        """
        Calculate Relative Strength Index.

        Average gains and losses use Wilder's smoothing. The first value
        needs ``period`` price changes.

        Args:
            df: DataFrame with price data
            column: Column to calculate RSI on
            period: RSI period (typically 14)

        Returns:
            DataFrame with RSI column added
        """
        df = df.copy()

        delta = df[column].diff()

        gains = delta.clip(lower=0).where(delta.notna())
        losses = (-delta).clip(lower=0).where(delta.notna())

        avg_gains = cls.ema(gains, period, wilder=True)
        avg_losses = cls.ema(losses, period, wilder=True)

        total = avg_gains + avg_losses
        rsi = 100 * avg_gains / total.replace(0, np.nan)

        # Flat window: no movement either way
        rsi = rsi.where(~((total == 0) & avg_gains.notna()), 50.0)

        df[f'rsi_{period}'] = rsi

        return df

    @classmethod
    def macd(
        cls,
        df: pd.DataFrame,
        column: str = 'close',
        fast_period: int = 12,
        slow_period: int = 26,
        signal_period: int = 9,
        percent: bool = True
    ) -> pd.DataFrame:
        """
        Calculate MACD (Moving Average Convergence Divergence).

        Args:
            df: DataFrame with price data
            column: Column to calculate MACD on
            fast_period: Fast EMA period
            slow_period: Slow EMA period
            signal_period: Signal line period
            percent: Express MACD as a percentage of the slow EMA

        Returns:
            DataFrame with 'macd' and 'macd_signal' columns
        """
        df = df.copy()

        ema_fast = cls.ema(df[column], fast_period)
        ema_slow = cls.ema(df[column], slow_period)

        if percent:
            df['macd'] = 100 * (ema_fast / ema_slow - 1)
        else:
            df['macd'] = ema_fast - ema_slow

        df['macd_signal'] = cls.ema(df['macd'], signal_period)

        return df

    @classmethod
    def add_all_indicators(
        cls,
        df: pd.DataFrame,
        rsi_period: int = RSI_PERIOD,
        sma_periods: List[int] = SMA_PERIODS,
        macd_fast: int = 12,
        macd_slow: int = 26,
        macd_signal: int = 9,
        macd_percent: bool = True
    ) -> pd.DataFrame:
        """
        Add all technical indicators to DataFrame.

        Args:
            df: DataFrame with a close column
            rsi_period: RSI calculation period
            sma_periods: SMA window lengths
            macd_fast: MACD fast EMA period
            macd_slow: MACD slow EMA period
            macd_signal: MACD signal line period
            macd_percent: Percentage MACD

        Returns:
            DataFrame with all indicators added
        """
        logger.info("Adding technical indicators...")

        df = cls.log_returns(df)
        df = cls.rsi(df, period=rsi_period)
        df = cls.sma(df, periods=sma_periods)
        df = cls.macd(df, fast_period=macd_fast, slow_period=macd_slow,
                      signal_period=macd_signal, percent=macd_percent)

        return df
