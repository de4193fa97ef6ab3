#!/usr/bin/env python3

import os
import shutil
import unittest

import pandas as pd

from trimsa.tests.data_files import *
from trimsa.process.sequence import AlignmentList
from trimsa.process.batch import filter_alignments
from trimsa.process.error_handling import *

temp_dir = ".trimsa-test-filters"


class AlignmentTaxaFiltersTest(unittest.TestCase):

    def setUp(self):

        self.aln_obj = AlignmentList(min_taxa_fas)

    def test_total_taxa(self):

        self.assertEqual(len(self.aln_obj.taxa_names), 10)

    def test_min_taxa_from_percent(self):

        self.assertEqual(self.aln_obj.get_min_taxa(0.65), 6)

    def test_filter_min_taxa(self):

        passing = self.aln_obj.filter_min_taxa(
            self.aln_obj.get_min_taxa(0.65))

        self.assertEqual(passing, [min_taxa_fas[0]])

    def test_filter_min_taxa_inclusive(self):

        passing = self.aln_obj.filter_min_taxa(5)

        self.assertEqual(passing, min_taxa_fas)

    def test_filter_min_taxa_empty(self):

        self.assertRaises(NoAlignmentsLeft,
                          lambda: self.aln_obj.filter_min_taxa(7))

    def test_filter_by_taxa(self):

        passing = AlignmentList(concat_dna_fas).filter_by_taxa(["spa",
                                                                "spc"])

        self.assertEqual(passing, concat_dna_fas[:2])


class AlignmentSitesFiltersTest(unittest.TestCase):

    def setUp(self):

        self.aln_obj = AlignmentList(concat_dna_fas, threads=2)

    def test_filter_length(self):

        passing = self.aln_obj.filter_alignment_length(min_len=8)

        self.assertEqual(passing, [concat_dna_fas[0], concat_dna_fas[2]])

    def test_filter_length_range(self):

        passing = self.aln_obj.filter_alignment_length(min_len=6,
                                                       max_len=8)

        self.assertEqual(passing, concat_dna_fas[1:])

    def test_informative_sites(self):

        counts = self.aln_obj.get_informative_sites()

        self.assertEqual(list(counts.values()), [2, 0, 0])

    def test_filter_informative_sites(self):

        passing = self.aln_obj.filter_informative_sites(min_val=1)

        self.assertEqual(passing, [concat_dna_fas[0]])

    def test_filter_informative_sites_max(self):

        passing = self.aln_obj.filter_informative_sites(max_val=0)

        self.assertEqual(passing, concat_dna_fas[1:])

    def test_filter_informative_percent(self):

        passing = self.aln_obj.filter_informative_percent(0.5)

        self.assertEqual(passing, [concat_dna_fas[0]])

    def test_filter_unaligned(self):

        aln_obj = AlignmentList(concat_dna_fas + unaligned_fas)

        self.assertRaises(AlignmentUnequalLength,
                          lambda: aln_obj.filter_alignment_length(min_len=1))


class AlignmentMissingFiltersTest(unittest.TestCase):

    def setUp(self):

        self.aln_obj = AlignmentList(missing_fas)

    def test_filter_missing(self):

        passing = self.aln_obj.filter_missing_data(0.25)

        self.assertEqual(passing, [missing_fas[0]])

    def test_filter_missing_inclusive(self):

        passing = self.aln_obj.filter_missing_data(0.125)

        self.assertEqual(passing, [missing_fas[0]])

    def test_filter_missing_all(self):

        passing = self.aln_obj.filter_missing_data(0.5)

        self.assertEqual(passing, self.aln_obj.files)


class BatchFiltersTest(unittest.TestCase):

    def setUp(self):

        os.makedirs(temp_dir)
        self.output_dir = os.path.join(temp_dir, "filtered")

    def tearDown(self):

        shutil.rmtree(temp_dir)

    def test_filter_copy(self):

        filter_alignments(min_taxa_fas, self.output_dir, percent=0.65)

        self.assertEqual(os.listdir(self.output_dir), ["locus1.fas"])

    def test_filter_concatenate(self):

        output = os.path.join(temp_dir, "concat")
        filter_alignments(concat_dna_fas, output, min_pinf=0, max_pinf=0,
                          concat=True, output_format="fasta")

        self.assertTrue(os.path.exists(output + ".fas"))

    def test_filter_summary(self):

        summary = os.path.join(temp_dir, "summary.csv")
        filter_alignments(concat_dna_fas, self.output_dir, percent_inf=0.5,
                          summary=summary)

        df = pd.read_csv(summary)
        self.assertEqual(sorted(df["informative_sites"].tolist()),
                         [0, 0, 2])

    def test_filter_output_exists(self):

        os.makedirs(self.output_dir)

        self.assertRaises(OutputCollision,
                          lambda: filter_alignments(min_taxa_fas,
                                                    self.output_dir,
                                                    min_taxa=1))

    def test_filter_force(self):

        os.makedirs(self.output_dir)
        filter_alignments(min_taxa_fas, self.output_dir, min_taxa=1,
                          force=True)

        self.assertEqual(sorted(os.listdir(self.output_dir)),
                         ["locus1.fas", "locus2.fas"])

    def test_filter_no_criterion(self):

        self.assertRaises(TriMSAError,
                          lambda: filter_alignments(min_taxa_fas,
                                                    self.output_dir))


if __name__ == "__main__":
    unittest.main()
