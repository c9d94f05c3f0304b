from ojt_export.images.fetcher import ImageFetcher, RequestsImageFetcher, fetcher_from_env

__all__ = ["ImageFetcher", "RequestsImageFetcher", "fetcher_from_env"]
