"""Key pair generation for CA and leaf certificates."""

from cryptography.hazmat.primitives.asymmetric import ec, rsa

from .errors import KeyGenerationError
from .models import KeyAlgorithm, KeyPair

MIN_RSA_KEY_BITS = 2048

EC_CURVES: dict[int, type[ec.EllipticCurve]] = {
    256: ec.SECP256R1,
    384: ec.SECP384R1,
    521: ec.SECP521R1,
}


class KeyGenerator:
    """Generates fresh private keys at a requested strength."""

    def generate(self, algorithm: KeyAlgorithm | str, strength: int) -> KeyPair:
        """Generate a new key pair.

        Args:
            algorithm: KeyAlgorithm or its string value ("rsa", "ec")
            strength: RSA modulus size in bits, or EC curve size (256/384/521)

        Returns:
            Newly generated KeyPair

        Raises:
            KeyGenerationError: If the algorithm or strength is not allowed,
                or the backend fails to produce a key
        """
        try:
            algorithm = KeyAlgorithm(algorithm)
        except ValueError as e:
            raise KeyGenerationError(f"unsupported key algorithm: {algorithm}") from e

        if algorithm is KeyAlgorithm.RSA:
            if strength < MIN_RSA_KEY_BITS:
                raise KeyGenerationError(
                    f"RSA key size {strength} is below the {MIN_RSA_KEY_BITS}-bit minimum"
                )
            try:
                private_key = rsa.generate_private_key(public_exponent=65537, key_size=strength)
            except (ValueError, OSError) as e:
                raise KeyGenerationError(f"RSA key generation failed: {e}") from e
        else:
            curve = EC_CURVES.get(strength)
            if curve is None:
                raise KeyGenerationError(
                    f"unsupported EC key size {strength}, expected one of {sorted(EC_CURVES)}"
                )
            try:
                private_key = ec.generate_private_key(curve())
            except (ValueError, OSError) as e:
                raise KeyGenerationError(f"EC key generation failed: {e}") from e

        return KeyPair(private_key=private_key, algorithm=algorithm, strength=strength)
