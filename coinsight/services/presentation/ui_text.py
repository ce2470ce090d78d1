"""Fixed UI strings in every display language. These never go through the translator."""

from __future__ import annotations

from typing import Dict

UI_TEXT: Dict[str, Dict[str, str]] = {
    "headerTitle": {
        "en": "AI Powered Crypto Analysis Platform",
        "tr": "Yapay Zeka Destekli Kripto Analiz Platformu",
    },
    "selectCoin": {"en": "Select Coin", "tr": "Coin Seç"},
    "liveLabel": {"en": "LIVE", "tr": "CANLI"},
    "latestNews": {"en": "Latest News", "tr": "Son Haberler"},
    "loadingNews": {"en": "Loading news...", "tr": "Haberler yükleniyor..."},
    "newsError": {"en": "News error", "tr": "Haber hatası"},
    "noNews": {"en": "No news found for", "tr": "İçin haber bulunamadı"},
    "priceChart": {"en": "Price Chart", "tr": "Fiyat Grafiği"},
    "chartLoading": {"en": "Loading chart...", "tr": "Grafik yükleniyor..."},
    "chartError": {"en": "Chart Error", "tr": "Grafik Hatası"},
    "chartEmpty": {"en": "Chart data not found.", "tr": "Grafik verisi bulunamadı."},
    "technicalIndicators": {"en": "Technical Indicators", "tr": "Teknik İndikatörler"},
    "marketData": {"en": "Market Data", "tr": "Piyasa Verileri"},
    "metricVolume": {"en": "24h Volume", "tr": "24s Hacim"},
    "metric1hChange": {"en": "1h Change", "tr": "1s Değişim"},
    "metric24hChange": {"en": "24h Change", "tr": "24s Değişim"},
    "metric7dChange": {"en": "7d Change", "tr": "7g Değişim"},
    "metricMarketCap": {"en": "Market Cap", "tr": "Piyasa Değeri"},
    "metricRank": {"en": "CMC Rank", "tr": "CMC Sırası"},
    "aiAnalysisTitle": {"en": "AI Analysis", "tr": "Yapay Zeka Analizi"},
    "aiSummaryPlaceholder": {
        "en": "AI analysis loading...",
        "tr": "Yapay zeka analizi yükleniyor...",
    },
}


def ui_text(key: str, language: str) -> str:
    """Localized string; falls back to English, then to the key itself."""
    entry = UI_TEXT.get(key)
    if entry is None:
        return key
    return entry.get(language) or entry.get("en") or key


def truncate_text(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."
