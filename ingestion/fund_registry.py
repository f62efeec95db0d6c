"""
Fund registry - static profiles of the tracked NASDAQ-100 QDII ETFs.
Reference data only; nothing here is derived.
"""

from typing import List, Optional

from analysis.models import FundProfile


class UnknownFundError(KeyError):
    """Raised when a ticker is not in the registry."""
    pass


POPULAR_ETFS: List[FundProfile] = [
    FundProfile(
        ticker='513100',
        market_code='1.513100',
        name='Guotai NASDAQ-100 ETF',
        description='Actively traded with good liquidity, suits short-term trading.',
        nav_source_url='https://www.gtfund.com/',
        price_source_url='https://quote.eastmoney.com/sh513100.html'
    ),
    FundProfile(
        ticker='159941',
        market_code='0.159941',
        name='GF NASDAQ-100 ETF',
        description='Large and long-running, low tracking error.',
        nav_source_url='http://www.gffunds.com.cn/',
        price_source_url='https://quote.eastmoney.com/sz159941.html'
    ),
    FundProfile(
        ticker='159696',
        market_code='0.159696',
        name='E Fund NASDAQ-100 ETF',
        description='Lower fees, suits long-term regular investing.',
        nav_source_url='https://www.efunds.com.cn/',
        price_source_url='https://quote.eastmoney.com/sz159696.html'
    ),
    FundProfile(
        ticker='513300',
        market_code='1.513300',
        name='ChinaAMC NASDAQ-100 ETF',
        description='Established manager, sizeable fund.',
        nav_source_url='https://www.chinaamc.com/',
        price_source_url='https://quote.eastmoney.com/sh513300.html'
    ),
    FundProfile(
        ticker='159501',
        market_code='0.159501',
        name='Harvest NASDAQ-100 ETF',
        description='Recently launched, watch for fee discounts.',
        nav_source_url='http://www.jsfund.cn/',
        price_source_url='https://quote.eastmoney.com/sz159501.html'
    ),
    FundProfile(
        ticker='159660',
        market_code='0.159660',
        name='China Universal NASDAQ-100 ETF',
        description='Managed by a well-known fund house.',
        nav_source_url='https://www.99fund.com/',
        price_source_url='https://quote.eastmoney.com/sz159660.html'
    ),
    FundProfile(
        ticker='159632',
        market_code='0.159632',
        name='Huaan NASDAQ-100 ETF',
        description='Managed by Huaan Fund.',
        nav_source_url='https://www.huaan.com.cn/',
        price_source_url='https://quote.eastmoney.com/sz159632.html'
    ),
]


def find_profile(ticker: str) -> Optional[FundProfile]:
    """Look up a profile by ticker, None if not tracked."""
    for profile in POPULAR_ETFS:
        if profile.ticker == ticker:
            return profile
    return None


def get_profile(ticker: str) -> FundProfile:
    """
    Look up a profile by ticker.

    Raises:
        UnknownFundError: If the ticker is not tracked
    """
    profile = find_profile(ticker)
    if profile is None:
        known = ', '.join(p.ticker for p in POPULAR_ETFS)
        raise UnknownFundError(f"Unknown fund {ticker!r}; tracked funds: {known}")
    return profile
